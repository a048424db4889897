from .Config import (
    NAME,
    VERSION,
    Attribute,
    AttributeMap,
    BrowserConfig,
    create_user_agent,
    default_attributes,
)

__all__ = [
    "NAME",
    "VERSION",
    "Attribute",
    "AttributeMap",
    "BrowserConfig",
    "create_user_agent",
    "default_attributes",
]
