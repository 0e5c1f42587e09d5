"""Formato de armazenamento do NavState no storage local.

JSON camelCase, compatível com o que o widget já grava no navegador:
{"currentPresetId": ..., "showPresets": ..., "presetPath": [{"id", "label"}]}
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from chatflow.domain.errors import NavigationStateCorrupt
from chatflow.domain.navigation import NavState, PathEntry


def encode_nav_state(state: NavState) -> str:
    return json.dumps(
        {
            "currentPresetId": state.current_preset_id,
            "showPresets": state.show_presets,
            "presetPath": [{"id": e.id, "label": e.label} for e in state.preset_path],
        },
        ensure_ascii=False,
    )


def decode_nav_state(raw: str | bytes) -> NavState:
    """Lê o payload salvo.

    Campos ausentes assumem o padrão (raiz, visível, caminho vazio).

    Raises:
        NavigationStateCorrupt: JSON inválido ou estado inconsistente
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")

    try:
        data: Any = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise NavigationStateCorrupt(f"Invalid navigation payload: {e}") from e

    if not isinstance(data, dict):
        raise NavigationStateCorrupt("Navigation payload must be an object")

    path = data.get("presetPath") or []
    if not isinstance(path, list):
        raise NavigationStateCorrupt("presetPath must be a list")

    try:
        return NavState(
            current_preset_id=data.get("currentPresetId"),
            show_presets=data.get("showPresets", True),
            preset_path=tuple(PathEntry.model_validate(entry) for entry in path),
        )
    except ValidationError as e:
        msg = f"Inconsistent navigation state: {e.error_count()} errors"
        raise NavigationStateCorrupt(msg) from e
