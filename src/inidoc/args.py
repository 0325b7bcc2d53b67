from typing import Any, Iterable
from .globals import (
    DEFAULT_COMMENT_PREFIXES,
    DUPLICATE_POLICIES,
    INVALID_MARKERS,
    DuplicatePolicy,
)

_LIMITS = (
    "max_sections",
    "max_properties_per_section",
    "max_value_length",
    "max_line_length",
    "max_pending_comments",
    "max_parsing_errors",
)


class Parameters:
    """Parameters for reading and writing."""

    def __init__(
        self,
        comment_prefixes: str | Iterable[str] = DEFAULT_COMMENT_PREFIXES,
        default_comment_prefix: str | None = None,
        duplicate_section_policy: DuplicatePolicy = "first_win",
        duplicate_key_policy: DuplicatePolicy = "first_win",
        collect_errors: bool = False,
        max_sections: int = 0,
        max_properties_per_section: int = 0,
        max_value_length: int = 0,
        max_line_length: int = 0,
        max_pending_comments: int = 0,
        max_parsing_errors: int = 0,
    ) -> None:
        """
        Args:
            comment_prefixes (str | Iterable[str], optional): Characters that start a
                comment, either as one string ("; #" style without spaces, e.g. ";#")
                or as an iterable of single characters. Defaults to (";", "#").
            default_comment_prefix (str | None, optional): Prefix used for writing
                comments. Must be one of comment_prefixes. If None, the first of
                comment_prefixes is taken. Defaults to None.
            duplicate_section_policy (DuplicatePolicy, optional): How repeated
                section names are resolved. Defaults to "first_win".
            duplicate_key_policy (DuplicatePolicy, optional): How repeated keys
                inside a section are resolved. Defaults to "first_win".
            collect_errors (bool, optional): Whether skipped lines are stored on the
                document as ParsingErrors. Otherwise they are reported as
                IniParsingWarning. Defaults to False.
            max_sections (int, optional): Maximum number of section headers.
                0 means unlimited. Defaults to 0.
            max_properties_per_section (int, optional): Maximum number of properties
                in one section. 0 means unlimited. Defaults to 0.
            max_value_length (int, optional): Maximum length of a value.
                0 means unlimited. Defaults to 0.
            max_line_length (int, optional): Maximum length of a raw line.
                0 means unlimited. Defaults to 0.
            max_pending_comments (int, optional): Maximum number of comment lines
                waiting for the next section or property. Oldest ones are dropped
                first. 0 means unlimited. Defaults to 0.
            max_parsing_errors (int, optional): Maximum number of collected errors.
                0 means unlimited. Defaults to 0.
        """
        # because the prefixes check each other on setting
        self._comment_prefixes: tuple[str, ...] = ()
        self._default_comment_prefix: str = ""

        self.comment_prefixes = comment_prefixes
        self.default_comment_prefix = default_comment_prefix
        self.duplicate_section_policy = duplicate_section_policy
        self.duplicate_key_policy = duplicate_key_policy
        self.collect_errors = collect_errors
        self.max_sections = max_sections
        self.max_properties_per_section = max_properties_per_section
        self.max_value_length = max_value_length
        self.max_line_length = max_line_length
        self.max_pending_comments = max_pending_comments
        self.max_parsing_errors = max_parsing_errors

    @property
    def comment_prefixes(self) -> tuple[str, ...]:
        return self._comment_prefixes

    @comment_prefixes.setter
    def comment_prefixes(self, value: str | Iterable[str]) -> None:
        value = tuple(value)
        if not value:
            raise ValueError("At least one comment prefix is required.")
        self.verify_marker(value, "comment prefix")
        self._comment_prefixes = tuple(dict.fromkeys(value))
        if self._default_comment_prefix not in self._comment_prefixes:
            self._default_comment_prefix = self._comment_prefixes[0]

    @property
    def default_comment_prefix(self) -> str:
        return self._default_comment_prefix

    @default_comment_prefix.setter
    def default_comment_prefix(self, value: str | None) -> None:
        if value is None:
            value = self.comment_prefixes[0]
        if value not in self.comment_prefixes:
            raise ValueError(
                f"Default comment prefix '{value}' must be one of {self.comment_prefixes}."
            )
        self._default_comment_prefix = value

    @property
    def duplicate_section_policy(self) -> DuplicatePolicy:
        return self._duplicate_section_policy

    @duplicate_section_policy.setter
    def duplicate_section_policy(self, value: DuplicatePolicy) -> None:
        self.verify_policy(value, "section")
        self._duplicate_section_policy = value

    @property
    def duplicate_key_policy(self) -> DuplicatePolicy:
        return self._duplicate_key_policy

    @duplicate_key_policy.setter
    def duplicate_key_policy(self, value: DuplicatePolicy) -> None:
        self.verify_policy(value, "key")
        self._duplicate_key_policy = value

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _LIMITS:
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(
                    f"{name} must be a non-negative integer (0 means unlimited)."
                )
        super().__setattr__(name, value)

    def verify_marker(self, marker: tuple[str, ...], name: str) -> None:
        for val in marker:
            if not isinstance(val, str) or len(val) != 1:
                raise ValueError(f"A {name} must be a single character.")
            if val in INVALID_MARKERS:
                raise ValueError(f"'{val}' is not allowed as a {name}.")

    def verify_policy(self, policy: str, name: str) -> None:
        if policy not in DUPLICATE_POLICIES:
            raise ValueError(
                f"Unknown duplicate {name} policy '{policy}'."
                f" Choose one of {DUPLICATE_POLICIES}."
            )

    def update(self, **kwargs) -> None:
        """Update parameters with kwargs

        Args:
            **kwargs: Keyword-arguments to update the parameters with.
        """
        for k, v in kwargs.items():
            if not hasattr(self, k) or k.startswith("_"):
                raise TypeError(f"'{k}' is not a valid parameter.")
            setattr(self, k, v)

    def copy(self, **kwargs) -> "Parameters":
        """Copy of these parameters, optionally updated with kwargs."""
        new = Parameters(
            comment_prefixes=self.comment_prefixes,
            default_comment_prefix=self.default_comment_prefix,
            duplicate_section_policy=self.duplicate_section_policy,
            duplicate_key_policy=self.duplicate_key_policy,
            collect_errors=self.collect_errors,
            **{limit: getattr(self, limit) for limit in _LIMITS},
        )
        new.update(**kwargs)
        return new

    def __repr__(self) -> str:
        return (
            f"Parameters(comment_prefixes={self.comment_prefixes!r}, "
            f"default_comment_prefix={self.default_comment_prefix!r}, "
            f"duplicate_section_policy={self.duplicate_section_policy!r}, "
            f"duplicate_key_policy={self.duplicate_key_policy!r}, "
            f"collect_errors={self.collect_errors!r}, "
            + ", ".join(f"{limit}={getattr(self, limit)}" for limit in _LIMITS)
            + ")"
        )
