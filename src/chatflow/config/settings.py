"""Configurações da aplicação via variáveis de ambiente.

Textos do bot (auto-resposta, handoff) podem ser sobrescritos pelo admin nas
brand settings; os valores aqui são apenas o fallback embutido.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

# -----------------------------------------------------------------------------
# Textos padrão do widget (mesmos exibidos antes do admin configurar a marca)
# -----------------------------------------------------------------------------
DEFAULT_AUTO_REPLY_TEXT: str = (
    "ধন্যবাদ আপনার মেসেজের জন্য! আমাদের একজন প্রতিনিধি শীঘ্রই আপনার সাথে যোগাযোগ করবে।"
)
DEFAULT_HANDOFF_TEXT: str = "কথা বলুন গ্রাহক এক্সিকিউটিভ এর সাথে"

VALID_LOCAL_BACKENDS = {"memory", "redis"}
VALID_DATA_BACKENDS = {"memory", "firestore"}


class Settings(BaseSettings):
    """Configurações lidas do ambiente."""

    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=False,
    )

    # Aplicação
    service_name: str = "chatflow"
    version: str = "0.1.0"
    environment: str = "development"
    log_level: str = "INFO"
    log_format: str = "json"  # json | text

    # Fluxo de conversa
    auto_reply_delay_seconds: float = 1.5  # Simula digitação antes da auto-resposta
    default_auto_reply_text: str = DEFAULT_AUTO_REPLY_TEXT
    default_handoff_text: str = DEFAULT_HANDOFF_TEXT

    # Estado local do cliente (equivalente ao localStorage do navegador)
    navigation_store_backend: str = "memory"  # memory | redis
    session_store_backend: str = "memory"  # memory | redis
    nav_state_key_prefix: str = "chatbot_preset_state"
    chat_id_key: str = "chatbot_chat_id"
    nav_state_ttl_seconds: int = 2592000  # 30 dias
    redis_url: str | None = None

    # Dados compartilhados (chats, mensagens, presets, brand settings)
    data_backend: str = "memory"  # memory | firestore
    firestore_project_id: str | None = None
    firestore_database_id: str = "(default)"
    chats_collection: str = "chats"
    messages_collection: str = "messages"
    presets_collection: str = "presets"
    brand_settings_collection: str = "brand_settings"

    # Agente
    agent_open_chats_limit: int = 200

    def validate_flow_config(self) -> list[str]:
        """Valida parâmetros do fluxo de conversa.

        Retorna lista de erros (vazia = OK).
        """
        errors: list[str] = []
        if self.auto_reply_delay_seconds < 0:
            errors.append("AUTO_REPLY_DELAY_SECONDS deve ser >= 0")
        if not self.default_auto_reply_text.strip():
            errors.append("DEFAULT_AUTO_REPLY_TEXT não pode ser vazio")
        if not self.default_handoff_text.strip():
            errors.append("DEFAULT_HANDOFF_TEXT não pode ser vazio")
        return errors

    def validate_local_state_backends(self) -> list[str]:
        """Valida backends de estado local (navegação e chat_id em cache)."""
        errors: list[str] = []
        for name, backend in (
            ("NAVIGATION_STORE_BACKEND", self.navigation_store_backend.lower()),
            ("SESSION_STORE_BACKEND", self.session_store_backend.lower()),
        ):
            if backend not in VALID_LOCAL_BACKENDS:
                errors.append(
                    f"{name} '{backend}' inválido. Valores válidos: {VALID_LOCAL_BACKENDS}"
                )
            if backend == "redis" and not self.redis_url:
                errors.append(f"{name}=redis requer REDIS_URL configurado")
        return errors

    def validate_data_backend(self) -> list[str]:
        """Valida backend de dados compartilhados.

        Em staging/prod, memory é proibido (cada instância teria seus próprios
        chats e o agente nunca veria o cliente).
        """
        errors: list[str] = []
        backend = self.data_backend.lower()

        if backend not in VALID_DATA_BACKENDS:
            errors.append(
                f"DATA_BACKEND '{backend}' inválido. Valores válidos: {VALID_DATA_BACKENDS}"
            )

        if backend == "memory" and (self.is_staging or self.is_production):
            errors.append("DATA_BACKEND=memory é proibido em staging/production")

        if backend == "firestore" and not self.firestore_project_id:
            errors.append("DATA_BACKEND=firestore requer FIRESTORE_PROJECT_ID configurado")

        return errors

    def validate_all(self) -> list[str]:
        """Agrega todas as validações."""
        return (
            self.validate_flow_config()
            + self.validate_local_state_backends()
            + self.validate_data_backend()
        )

    @property
    def is_production(self) -> bool:
        """Retorna True se ambiente é produção."""
        return self.environment.lower() in ("production", "prod")

    @property
    def is_staging(self) -> bool:
        """Retorna True se ambiente é staging."""
        return self.environment.lower() in ("staging", "stage")

    @property
    def is_development(self) -> bool:
        """Retorna True se ambiente é desenvolvimento."""
        return self.environment.lower() in ("development", "dev", "local")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Retorna uma instância cacheada de Settings."""
    return Settings()
