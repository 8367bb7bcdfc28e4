from propwire.providers import Lifetime

DEFAULT_CONVENTION_ATTRIBUTE = "__inject_properties__"
"""Class attribute holding an explicit ``{property_name: dependency_key}`` mapping."""

DEFAULT_AUTOREGISTER_LIFETIME = Lifetime.TRANSIENT
