"""Estado de navegação do cliente na árvore de presets.

Invariante: `preset_path` vazio se e somente se `current_preset_id` é None;
caso contrário o último item do caminho é o nó corrente.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from chatflow.domain.presets import PresetNode


class PathEntry(BaseModel):
    """Item do breadcrumb: (id do nó, rótulo do botão)."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str


class NavState(BaseModel):
    """Posição do cliente na árvore (persistida por conversa)."""

    model_config = ConfigDict(frozen=True)

    current_preset_id: str | None = None
    show_presets: bool = True
    preset_path: tuple[PathEntry, ...] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def _path_matches_current(self) -> NavState:
        if self.current_preset_id is None:
            if self.preset_path:
                raise ValueError("preset_path deve ser vazio quando current_preset_id é None")
        elif not self.preset_path or self.preset_path[-1].id != self.current_preset_id:
            raise ValueError("último item de preset_path deve ser current_preset_id")
        return self

    @classmethod
    def root(cls, show_presets: bool = True) -> NavState:
        """Estado inicial: raiz, presets visíveis, caminho vazio."""
        return cls(current_preset_id=None, show_presets=show_presets, preset_path=())

    @property
    def is_root(self) -> bool:
        return self.current_preset_id is None

    @property
    def depth(self) -> int:
        return len(self.preset_path)

    def descend(self, node: PresetNode, show_presets: bool = True) -> NavState:
        """Novo estado com `node` como nó corrente e caminho estendido."""
        return NavState(
            current_preset_id=node.id,
            show_presets=show_presets,
            preset_path=(*self.preset_path, PathEntry(id=node.id, label=node.button_label)),
        )

    def with_visibility(self, show_presets: bool) -> NavState:
        return self.model_copy(update={"show_presets": show_presets})
