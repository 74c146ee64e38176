import tempfile
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from jinja2 import StrictUndefined, Template
from jinja2.exceptions import TemplateSyntaxError

from kind_bootstrap.core.exceptions import TemplateExecutionError, TemplateParseError
from kind_bootstrap.core.go_template_syntax import DOT, GoTemplateEnvironment, GoTemplateSyntax
from kind_bootstrap.core.utils import setup_logger


class TemplateLoader:
    def __init__(self) -> None:
        self._logger = setup_logger('TemplateLoader')

        # Rendered documents are YAML, not HTML: no escaping, and like Go's text/template
        # a missing field is an error and the final newline of the source is kept.
        self._environment = GoTemplateEnvironment(
            extensions=[GoTemplateSyntax],
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            autoescape=False,
        )

    def parse(self, template_source: str, name: str = 'kubeadm-config') -> Template:
        try:
            template = self._environment.from_string(template_source)
        except TemplateSyntaxError as e:
            self._logger.exception(f"Failed to parse template '{name}': {e}", exc_info=False)
            raise TemplateParseError(e) from e

        template.name = name

        return template

    def render(self, template: Template, values: dict[str, Any]) -> str:
        if not isinstance(values, dict):
            msg = 'Template values must be a dictionary'
            self._logger.exception(msg, exc_info=True)
            raise TypeError(msg)

        try:
            return template.render({DOT: values})
        except Exception as e:
            self._logger.exception(f"Failed to execute template '{template.name}': {e}", exc_info=False)
            raise TemplateExecutionError(e) from e

    def render_template(self, template_source: str, values: dict[str, Any] | None = None) -> str:
        values = values or {}

        return self.render(self.parse(template_source), values)

    @contextmanager
    def render_to_temp_file(
        self, template: Template, values: dict[str, Any], prefix: str = 'rendered_template_', suffix: str = '.tmp'
    ) -> Generator[Path, None, None]:
        rendered_content = self.render(template, values)

        temp_file_path = None
        try:
            with tempfile.NamedTemporaryFile(
                mode='w', delete=False, suffix=suffix, prefix=prefix, encoding='utf-8', newline=''
            ) as temp_file_object:
                temp_file_path = temp_file_object.name

                temp_file_object.write(rendered_content)

            yield Path(temp_file_path)

        finally:
            if temp_file_path:
                Path(temp_file_path).unlink(missing_ok=True)


template_loader = TemplateLoader()
