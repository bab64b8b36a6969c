"""
Engine Context

Configuration shared by every format call of one engine instance.
"""

from dataclasses import dataclass, fields
from typing import Any, Callable, Dict, Optional

from src.file_utils import load_function_by_path, read_yaml

DEFAULT_DATE_FORMAT = "DD.MM.YYYY"
DEFAULT_FORMULA_MAX_STEPS = 10000
DEFAULT_FORMULA_TIMEOUT = 0.5  # seconds


def _identity(text: str) -> str:
    return text


@dataclass
class EngineContext:
    """
    Engine-wide settings.

    edit_mode is read on every call, so toggling it on a live context
    takes effect immediately.
    """
    user: Optional[str] = None
    login_required: bool = False
    instance: Optional[int] = None
    language: str = "en"
    date_format: str = DEFAULT_DATE_FORMAT
    translate: Callable[[str], str] = _identity
    edit_mode: bool = False
    timezone: str = "local"
    formula_max_steps: int = DEFAULT_FORMULA_MAX_STEPS
    formula_timeout: float = DEFAULT_FORMULA_TIMEOUT

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "EngineContext":
        """
        Build a context from a configuration dictionary.

        Args:
            config: Engine settings; 'translate_func_path' may name a
                translation function by dotted path

        Returns:
            The engine context

        Raises:
            ValueError: If the configuration contains unknown keys
        """
        config = dict(config or {})
        translate_func_path = config.pop('translate_func_path', None)

        known_keys = {f.name for f in fields(cls)} - {'translate'}
        unknown_keys = set(config) - known_keys
        if unknown_keys:
            raise ValueError(f"Unknown engine configuration keys: {sorted(unknown_keys)}")

        if not config.get('date_format'):
            config.pop('date_format', None)

        context = cls(**config)
        if translate_func_path:
            context.translate = load_function_by_path(translate_func_path)
        return context

    @classmethod
    def from_yaml(cls, config_path: str) -> "EngineContext":
        """Build a context from the 'engine' section of a YAML file."""
        config = read_yaml(config_path) or {}
        return cls.from_config(config.get('engine', {}))
