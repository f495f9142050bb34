"""
Configuration Loader

This module centralizes configuration for the Feedback Co-Pilot service.
It supports two sources:
1. Default values (lowest precedence).
2. Environment variables, optionally loaded from a `.env` file.

The resolved configuration is exposed as a module-level `settings` object
built once at startup. Services never read the environment themselves; they
receive a `Settings` instance through their constructor. Once built, a
`Settings` object is read-only.
"""

import os
from dotenv import load_dotenv


class Settings:
    """
    Application configuration settings.

    Priority order for values:
    1. Explicit keyword overrides (used by tests and scripts).
    2. Environment variables.
    3. Built-in defaults.

    Attributes:
        llm_name (str): Provider-prefixed model id ("gemini:<model>" or "ollama:<model>").
        gemini_api_key (str | None): Credential for the Gemini provider.
        ollama_host (str): Base URL of the Ollama service.
        airtable_api_key (str | None): Airtable personal access token.
        airtable_base_id (str | None): Airtable base identifier.
        airtable_table_name (str): Table holding homework assignments.
        airtable_profiles_table (str): Table holding student profiles.
        port (int): HTTP listen port.
        upload_dir (str): Directory for temporary upload files.
        max_upload_bytes (int): Upload size limit.
        request_timeout (float): Timeout in seconds for outbound HTTP calls.
        feedback_language (str): Language the generated feedback is written in.
        cors_origins (list[str]): Allowed CORS origins.
        log_level (str): Root log level for the service loggers.
    """

    def __init__(self, load_env: bool = True, **overrides):
        """Initialize settings (defaults, then environment, then overrides)."""
        if load_env:
            load_dotenv()

        # --- Default values ---
        values = {
            "llm_name": "gemini:gemini-2.5-flash",
            "gemini_api_key": None,
            "ollama_host": "http://localhost:11434",
            "airtable_api_key": None,
            "airtable_base_id": None,
            "airtable_table_name": "Homework_database",
            "airtable_profiles_table": "Student_profiles",
            "port": 3000,
            "upload_dir": "uploads",
            "max_upload_bytes": 10 * 1024 * 1024,
            "request_timeout": 30.0,
            "feedback_language": "Ukrainian",
            "cors_origins": ["*"],
            "log_level": "INFO",
        }

        # --- Override with environment variables ---
        if load_env:
            values.update(self._env_overrides(values))

        for key, value in overrides.items():
            if key not in values:
                raise TypeError(f"Unknown setting: {key}")
            values[key] = value

        for key, value in values.items():
            object.__setattr__(self, key, value)

    # ----------------------------------------------------------------------
    @staticmethod
    def _env_overrides(defaults: dict) -> dict:
        """Collect environment variable overrides."""
        env = {
            "llm_name": os.getenv("LLM_NAME", defaults["llm_name"]),
            "gemini_api_key": os.getenv("GEMINI_API_KEY") or None,
            "ollama_host": os.getenv("OLLAMA_HOST", defaults["ollama_host"]),
            "airtable_api_key": os.getenv("AIRTABLE_API_KEY") or None,
            "airtable_base_id": os.getenv("AIRTABLE_BASE_ID") or None,
            "airtable_table_name": os.getenv("AIRTABLE_TABLE_NAME", defaults["airtable_table_name"]),
            "airtable_profiles_table": os.getenv(
                "AIRTABLE_PROFILES_TABLE", defaults["airtable_profiles_table"]
            ),
            "port": int(os.getenv("PORT", defaults["port"])),
            "upload_dir": os.getenv("UPLOAD_DIR", defaults["upload_dir"]),
            "max_upload_bytes": int(os.getenv("MAX_UPLOAD_BYTES", defaults["max_upload_bytes"])),
            "request_timeout": float(os.getenv("REQUEST_TIMEOUT", defaults["request_timeout"])),
            "feedback_language": os.getenv("FEEDBACK_LANGUAGE", defaults["feedback_language"]),
            "log_level": os.getenv("LOG_LEVEL", defaults["log_level"]).upper(),
        }

        origins = os.getenv("CORS_ORIGINS")
        if origins:
            env["cors_origins"] = [o.strip() for o in origins.split(",") if o.strip()]
        return env

    def __setattr__(self, name, value):
        raise AttributeError(f"Settings are read-only (tried to set '{name}')")

    @property
    def llm_provider(self) -> str:
        """Provider prefix of `llm_name` ("gemini" when no prefix is given)."""
        provider, sep, _ = self.llm_name.partition(":")
        return provider.lower() if sep else "gemini"

    @property
    def llm_model(self) -> str:
        """Model id with the provider prefix removed."""
        provider, sep, model = self.llm_name.partition(":")
        return model if sep else provider

    @property
    def airtable_configured(self) -> bool:
        return bool(self.airtable_api_key and self.airtable_base_id)


# Singleton settings object
settings = Settings()
