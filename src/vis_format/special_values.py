"""
Special Values

Reserved state references that resolve from the engine and widget context
instead of the live state map.
"""

from enum import Enum
from typing import Any, Callable, Dict, Optional

from .context import EngineContext


class SpecialValue(str, Enum):
    """Reserved identifiers and the context field they resolve to."""
    USERNAME = "username.val"
    LOGIN = "login.val"
    INSTANCE = "instance.val"
    LANGUAGE = "language.val"
    WIDGET_ID = "wid.val"
    WIDGET_NAME = "wname.val"
    VIEW = "view.val"


class SpecialValueResolver:
    """Maps reserved identifiers to the engine context and the current widget."""

    def __init__(self, context: EngineContext):
        self.context = context
        self._resolvers: Dict[SpecialValue, Callable[[Optional[str], Optional[str], Optional[dict]], Any]] = {
            SpecialValue.USERNAME: lambda view, wid, widget_data: self.context.user,
            SpecialValue.LOGIN: lambda view, wid, widget_data: self.context.login_required,
            SpecialValue.INSTANCE: lambda view, wid, widget_data: self.context.instance,
            SpecialValue.LANGUAGE: lambda view, wid, widget_data: self.context.language,
            SpecialValue.WIDGET_ID: lambda view, wid, widget_data: wid,
            SpecialValue.WIDGET_NAME: lambda view, wid, widget_data: (widget_data or {}).get("name") or wid,
            SpecialValue.VIEW: lambda view, wid, widget_data: view,
        }

    def resolve(
        self,
        name: Optional[str],
        view: Optional[str] = None,
        wid: Optional[str] = None,
        widget_data: Optional[dict] = None
    ) -> Any:
        """
        Resolve a reserved identifier.

        Args:
            name: State reference, e.g. "username.val"
            view: Current view name
            wid: Current widget id
            widget_data: Current widget data record

        Returns:
            The context value, or None if the name is not reserved
        """
        try:
            special = SpecialValue(name)
        except ValueError:
            return None
        return self._resolvers[special](view, wid, widget_data)
