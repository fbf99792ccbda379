from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

from dotenv import load_dotenv


def _load_env() -> None:
    # Load .env if present (non-fatal if missing)
    load_dotenv(override=False)


LLMProvider = Literal["mock", "openai"]

_TRUTHY = ("1", "true", "yes", "y", "on")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUTHY


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


@dataclass(frozen=True)
class Settings:
    llm_provider: LLMProvider = "mock"
    openai_model: str = "gpt-4o-mini"

    # Attach the provider's web search tool to audit requests.
    web_search: bool = True

    # Seconds before a single engine call is abandoned by the HTTP client.
    # The pipeline itself never retries.
    request_timeout: float = 120.0

    # Optional override for the checklist YAML file.
    # If unset, the app defaults to data/checklists.v1.yaml inside the package.
    checklists_path: str = ""

    log_level: str = "INFO"

    @staticmethod
    def from_env() -> "Settings":
        _load_env()
        llm_provider = os.getenv("DOCUSHIELD_LLM_PROVIDER", "mock").strip().lower()
        if llm_provider not in ("mock", "openai"):
            llm_provider = "mock"

        openai_model = os.getenv("DOCUSHIELD_OPENAI_MODEL", "gpt-4o-mini").strip() or "gpt-4o-mini"

        log_level = os.getenv("DOCUSHIELD_LOG_LEVEL", "INFO").strip().upper() or "INFO"

        return Settings(
            llm_provider=llm_provider,  # type: ignore[arg-type]
            openai_model=openai_model,
            web_search=_env_bool("DOCUSHIELD_WEB_SEARCH", True),
            request_timeout=_env_float("DOCUSHIELD_REQUEST_TIMEOUT", 120.0),
            checklists_path=os.getenv("DOCUSHIELD_CHECKLISTS_PATH", "").strip(),
            log_level=log_level,
        )
