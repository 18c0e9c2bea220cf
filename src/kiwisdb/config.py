"""
Configuration for KiWIS datastores.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

DEFAULT_TIMEOUT = 300.0  # Values requests for long periods can take minutes

_TRUE_STRINGS = ("true", "yes", "1", "on")


def as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_STRINGS


@dataclass
class ClientConfig:
    """Connection and identity settings for one KiWIS datastore."""

    service_root_url: str
    name: str = "KiWIS"
    description: str = "KiWIS web services"
    timeout: float = DEFAULT_TIMEOUT
    debug: bool = False
    service_version: Optional[str] = None
    properties: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.service_root_url:
            raise ValueError("KiWIS service root URL is required")
        if self.timeout <= 0:
            raise ValueError(f"Timeout must be positive, got {self.timeout}")

    @classmethod
    def from_properties(cls, properties: Mapping[str, Any]) -> "ClientConfig":
        """
        Create a configuration from datastore configuration properties.

        Recognized keys are ``Name``, ``Description``, ``ServiceRootURI``,
        ``Timeout``, ``Debug`` and ``ServiceVersion``. All properties are kept
        so that configuration requirement checks can read them.
        """
        timeout = properties.get("Timeout")
        return cls(
            service_root_url=str(properties.get("ServiceRootURI", "")).strip(),
            name=str(properties.get("Name", "KiWIS")),
            description=str(properties.get("Description", "KiWIS web services")),
            timeout=float(timeout) if timeout not in (None, "") else DEFAULT_TIMEOUT,
            debug=as_bool(properties.get("Debug", False)),
            service_version=properties.get("ServiceVersion") or None,
            properties={str(k): str(v) for k, v in properties.items()},
        )

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None, prefix: str = "KIWIS_"
    ) -> "ClientConfig":
        """Create a configuration from ``KIWIS_*`` environment variables."""
        env = os.environ if environ is None else environ
        properties = {
            "Name": env.get(f"{prefix}NAME", "KiWIS"),
            "Description": env.get(f"{prefix}DESCRIPTION", "KiWIS web services"),
            "ServiceRootURI": env.get(f"{prefix}SERVICE_ROOT_URL", ""),
            "Timeout": env.get(f"{prefix}TIMEOUT", ""),
            "Debug": env.get(f"{prefix}DEBUG", "false"),
            "ServiceVersion": env.get(f"{prefix}SERVICE_VERSION", ""),
        }
        system_id = env.get(f"{prefix}SYSTEM_ID")
        if system_id:
            properties["system_id"] = system_id
        return cls.from_properties(properties)
