from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable

from .errors import CardinalityViolation, MissingFn, MissingVersion, UnsupportedVersion, ValidationError
from .model import Property
from .schema import RULES, PropertyType

logger = logging.getLogger(__name__)

SUPPORTED_VERSION = "4.0"


def _instances(properties: list[Property]) -> int:
    """Count occurrences, treating properties that share an ALTID as one."""
    altids: set[str] = set()
    count = 0
    for prop in properties:
        altid = prop.altid
        if altid is None:
            count += 1
        elif altid not in altids:
            altids.add(altid)
            count += 1
    return count


def validate(properties: Iterable[Property]) -> list[ValidationError]:
    """Check required properties and cardinality; return every problem found.

    Extension properties are never constrained.
    """
    by_type: dict[PropertyType, list[Property]] = defaultdict(list)
    for prop in properties:
        if prop.type is not PropertyType.EXTENSION:
            by_type[prop.type].append(prop)

    errors: list[ValidationError] = []

    versions = by_type[PropertyType.VERSION]
    if not versions:
        errors.append(MissingVersion())
    elif len(versions) > 1:
        errors.append(CardinalityViolation(PropertyType.VERSION, len(versions)))
    elif versions[0].value.text != SUPPORTED_VERSION:
        errors.append(UnsupportedVersion(versions[0].value.text))

    if not by_type[PropertyType.FN]:
        errors.append(MissingFn())

    for property_type, rule in RULES.items():
        if not rule.single or property_type is PropertyType.VERSION:
            continue
        count = _instances(by_type[property_type])
        if count > 1:
            errors.append(CardinalityViolation(property_type, count))

    if errors:
        logger.debug("validation found %d problem(s)", len(errors))
    return errors
