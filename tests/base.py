from inidoc import Document, Parameters, load_file
from typing import Any, ContextManager, Callable
from contextlib import nullcontext
from uuid import uuid1
from pathlib import Path
import inspect


class Base:
    """Base for tests. Provides functions for creating an ini content and reading it
    back."""

    def __init__(self, comment_prefix: str = ";") -> None:
        """
        Args:
            comment_prefix (str, optional): Prefix for the comments written into the
                content. Defaults to ";".
        """
        self.lines: list[str] = []
        self.comment_prefix = comment_prefix
        self.sections: dict[str, list[str]] = {}
        """Section names with the keys added to them (None for the default section)."""

    @property
    def content(self) -> str:
        return "\n".join(self.lines) + "\n"

    @classmethod
    def random_id(cls) -> str:
        """Create a random UUID1 with underscores instead of hyphens."""
        return str(uuid1()).replace("-", "_")

    @classmethod
    def create_parametrization(
        cls, target: Callable, parameters: list[dict[str, Any]]
    ) -> tuple[str, list[tuple]]:
        """Create a pytest mark parametrization for a target function.

        Args:
            target (Callable): The target function to parametrize.
            parameters (list[dict[str, Any]]): Parameters to pass. One dict per
                parametrization with keys matching target arguments.

        Returns:
            tuple[str, list[tuple]]: Tuple of argnames and argvalues to pass to
                pytest.mark.parametrize.
        """
        args_to_pass = {"value": "", "result": ""}

        # get default args from target
        args_to_pass |= {
            k: v.default
            for k, v in inspect.signature(target).parameters.items()
            if v.default is not v.empty
        }

        parametrization: list[tuple] = []
        for pars in parameters:
            if {*pars.keys()}.difference(args_to_pass.keys()):
                raise ValueError("Parameters must be function arguments.")
            parametrization.append(tuple((args_to_pass | pars).values()))

        return ",".join(args_to_pass), parametrization

    def add_section(self, name: str | None = None, comment: str | None = None) -> str:
        """Add a section header.

        Args:
            name (str | None, optional): The section name. Random if None.
            comment (str | None, optional): Inline comment. Defaults to None.

        Returns:
            str: The section name.
        """
        if name is None:
            name = self.random_id()
        line = f"[{name}]"
        if comment is not None:
            line += f" {self.comment_prefix}{comment}"
        self.lines.append(line)
        self.sections.setdefault(name, [])
        return name

    def add_property(
        self, value: str | None = None, key: str | None = None, raw: bool = False
    ) -> str:
        """Add a property to the last section.

        Args:
            value (str | None, optional): The value as written in the ini. Random if None.
            key (str | None, optional): The key. Random if None.
            raw (bool, optional): Whether value already is the whole right-hand side
                of the line. Otherwise it is written after " = ". Defaults to False.

        Returns:
            str: The key.
        """
        if value is None:
            value = self.random_id()
        if key is None:
            key = self.random_id()
        self.lines.append(f"{key}{value}" if raw else f"{key} = {value}")
        if self.sections:
            self.sections[next(reversed(self.sections))].append(key)
        return key

    def add_comment(self, text: str | None = None) -> str:
        """Add a comment line. Returns the comment text."""
        if text is None:
            text = self.random_id()
        self.lines.append(f"{self.comment_prefix}{text}")
        return text

    def add_line(self, line: str) -> None:
        self.lines.append(line)

    def export(self, path: Path) -> Path:
        """Export the generated ini content.

        Args:
            path (Path): The directory to export to.

        Returns:
            Path: The export path.
        """
        dest = path / f"{self.random_id()}.ini"
        dest.write_text(self.content, encoding="utf-8")
        return dest

    def test_read_and_access(
        self,
        value: str,
        result: Any,
        export_path: Path,
        type_hint: Any = str,
        read_context: ContextManager | None = None,
        access_context: ContextManager | None = None,
        read_parameters: Parameters | None = None,
        further: Callable[[Document, str, str], bool] | None = None,
    ) -> None:
        """Write a section with one commented property holding value, read it back and
        verify the property's typed value and its comment.

        Args:
            value (str): The right-hand side of the property line.
            result (Any): The value the property is expected to return.
            export_path (Path): The directory to export the ini to.
            type_hint (Any, optional): Type to get the value as. Defaults to str.
            read_context (ContextManager | None, optional): ContextManager for reading
                the ini. Defaults to nullcontext().
            access_context (ContextManager | None, optional): ContextManager for
                accessing the value. Defaults to nullcontext().
            read_parameters (Parameters | None, optional): Parameters for reading.
            further (Callable[[Document, str, str], bool] | None, optional): Takes the
                document, the section name and the key. Asserted at the end if not None.
        """
        if read_context is None:
            read_context = nullcontext()
        if access_context is None:
            access_context = nullcontext()

        section = self.add_section()
        comment = self.add_comment()
        key = self.add_property(value)

        read_path = self.export(export_path)

        with read_context:
            document = load_file(read_path, encoding="utf-8", parameters=read_parameters)
        with access_context:
            assert document.get_value(section, key, type_hint) == result
            assert document[section][key].pre_comments.to_multiline_text() == comment
        if further:
            assert further(document, section, key)
