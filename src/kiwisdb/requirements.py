"""
Datastore requirement checks.

Command files declare requirements such as::

    @require datastore kiwis version >= 1.5.5
    @require datastore kiwis configuration system_id == CO-District-MHFD

Each requirement is parsed once into a :class:`VersionCheck` or
:class:`ConfigCheck` and then evaluated against a datastore.
"""

import logging
import operator
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Tuple, Union

from .exceptions import RequirementSyntaxError

logger = logging.getLogger(__name__)

ANNOTATIONS = ("@require", "@enabledif")
SUPPORTED_CONFIG_PROPERTIES = ("system_id",)
VERSION_PARTS = 3

OPERATORS: Dict[str, Callable[[object, object], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


@dataclass(frozen=True)
class VersionCheck:
    annotation: str
    datastore: str
    operator: str
    version: Tuple[int, ...]
    text: str

    @property
    def version_string(self) -> str:
        return ".".join(str(part) for part in self.version)


@dataclass(frozen=True)
class ConfigCheck:
    annotation: str
    datastore: str
    property_name: str
    operator: str
    value: str
    text: str


Requirement = Union[VersionCheck, ConfigCheck]


@dataclass(frozen=True)
class RequirementResult:
    met: bool
    message: str


def parse_version(text: str) -> Tuple[int, ...]:
    """
    Parse the first three parts of a dotted version, padding with zeros.

    Raises:
        ValueError: If a part is not an integer.
    """
    parts = text.strip().split(".")[:VERSION_PARTS]
    numbers = [int(part) for part in parts]
    return tuple(numbers + [0] * (VERSION_PARTS - len(numbers)))


def _operator(text: str, requirement: str) -> str:
    if text not in OPERATORS:
        raise RequirementSyntaxError(
            f"Unknown operator '{text}' in requirement: {requirement}"
        )
    return text


def parse_requirement(text: str) -> Requirement:
    """
    Parse a requirement string.

    Raises:
        RequirementSyntaxError: If the requirement is not a recognized datastore check.
    """
    parts = text.split()
    if len(parts) < 3 or parts[0].lower() not in ANNOTATIONS or parts[1].lower() != "datastore":
        raise RequirementSyntaxError(
            f"Requirement must start with '@require datastore <name>': {text}"
        )
    annotation, datastore = parts[0], parts[2]
    if len(parts) < 4:
        raise RequirementSyntaxError(
            "Requirement does not contain check type as one of: version, configuration, "
            f"for example: {annotation} datastore {datastore} version >= 1.0.0"
        )

    check_type = parts[3].lower()
    if check_type == "version":
        if len(parts) != 6:
            raise RequirementSyntaxError(
                f"Version requirement must be 'version <operator> <version>': {text}"
            )
        try:
            version = parse_version(parts[5])
        except ValueError as e:
            raise RequirementSyntaxError(f"Invalid version '{parts[5]}' in requirement: {text}") from e
        return VersionCheck(annotation, datastore, _operator(parts[4], text), version, text)

    if check_type == "configuration":
        if len(parts) < 7:
            raise RequirementSyntaxError(
                f"Configuration requirement must be 'configuration <property> <operator> <value>': {text}"
            )
        return ConfigCheck(
            annotation,
            datastore,
            parts[4],
            _operator(parts[5], text),
            " ".join(parts[6:]),
            text,
        )

    raise RequirementSyntaxError(f"Requirement check type '{parts[3]}' is unknown: {text}")


def check_requirement(
    requirement: Requirement,
    datastore_name: str,
    service_version: Optional[str] = None,
    configuration: Optional[Mapping[str, str]] = None,
) -> RequirementResult:
    """Evaluate a parsed requirement for the named datastore."""
    logger.info(f"Checking requirement: {requirement.text}")
    note = ""
    if requirement.datastore != datastore_name:
        note = (
            f"\nCommand file datastore name '{requirement.datastore}' substitute "
            f"that is actually used is '{datastore_name}'"
        )

    if isinstance(requirement, VersionCheck):
        return _check_version(requirement, service_version, note)
    return _check_configuration(requirement, configuration or {}, note)


def _check_version(
    requirement: VersionCheck, service_version: Optional[str], note: str
) -> RequirementResult:
    if not service_version:
        return RequirementResult(
            False, "Web service version is unknown (services are down or software problem)."
        )
    try:
        actual = parse_version(service_version)
    except ValueError:
        return RequirementResult(
            False, f"Web service version '{service_version}' is not a dotted version."
        )

    met = OPERATORS[requirement.operator](actual, requirement.version)
    verb = "does" if met else "does not"
    return RequirementResult(
        met,
        f"{requirement.annotation} web service version ({service_version}) {verb} meet "
        f"requirement: {requirement.operator} {requirement.version_string}{note}",
    )


def _check_configuration(
    requirement: ConfigCheck, configuration: Mapping[str, str], note: str
) -> RequirementResult:
    name = requirement.property_name
    if name not in SUPPORTED_CONFIG_PROPERTIES:
        return RequirementResult(
            False, f"Check type 'configuration' property '{name}' is not supported."
        )
    value = configuration.get(name)
    if not value:
        return RequirementResult(
            False, f"KiWIS configuration '{name}' value is not defined.{note}"
        )

    met = OPERATORS[requirement.operator](value, requirement.value)
    verb = "does" if met else "does not"
    return RequirementResult(
        met,
        f"KiWIS configuration property '{name}' value ({value}) {verb} meet the "
        f"requirement: {requirement.operator} {requirement.value}{note}",
    )
