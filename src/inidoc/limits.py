"""Ceilings bounding what a single parse may consume. A limit of 0 means unlimited."""

from .args import Parameters


def _exceeds(size: int, limit: int) -> bool:
    return limit > 0 and size > limit


def _reached(count: int, limit: int) -> bool:
    return limit > 0 and count >= limit


def line_too_long(line: str, parameters: Parameters) -> bool:
    """Whether a raw line (without line terminator) is longer than allowed."""
    return _exceeds(len(line), parameters.max_line_length)


def value_too_long(value: str, parameters: Parameters) -> bool:
    return _exceeds(len(value), parameters.max_value_length)


def section_limit_reached(section_count: int, parameters: Parameters) -> bool:
    """Whether section_count sections already exhaust the limit."""
    return _reached(section_count, parameters.max_sections)


def property_limit_reached(property_count: int, parameters: Parameters) -> bool:
    """Whether a section with property_count properties can't take another one."""
    return _reached(property_count, parameters.max_properties_per_section)


def pending_comments_full(pending_count: int, parameters: Parameters) -> bool:
    return _reached(pending_count, parameters.max_pending_comments)


def error_limit_reached(error_count: int, parameters: Parameters) -> bool:
    """Whether no further parsing error may be stored."""
    return _reached(error_count, parameters.max_parsing_errors)
