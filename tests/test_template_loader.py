import pytest
from jinja2.exceptions import TemplateSyntaxError, UndefinedError

from kind_bootstrap.core.exceptions import TemplateExecutionError, TemplateParseError
from kind_bootstrap.core.template_loader import TemplateLoader, template_loader as shared_template_loader


@pytest.fixture
def template_loader():
    return TemplateLoader()


class TestTemplateLoader:
    def test_shared_instance(self):
        assert isinstance(shared_template_loader, TemplateLoader)

    def test_parse_sets_name(self, template_loader):
        template = template_loader.parse('Hello, {{.Name}}!', name='greeting')
        assert template.name == 'greeting'

    def test_parse_invalid_template(self, template_loader):
        with pytest.raises(TemplateParseError) as exc_info:
            template_loader.parse('Hello, {{.Name')
        assert isinstance(exc_info.value.__cause__, TemplateSyntaxError)

    def test_render_template_no_variables(self, template_loader):
        assert template_loader.render_template('This is a test.') == 'This is a test.'

    def test_render_template_with_variables(self, template_loader):
        rendered_content = template_loader.render_template('Hello, {{.Name}}!', {'Name': 'World'})
        assert rendered_content == 'Hello, World!'

    def test_render_does_not_escape(self, template_loader):
        rendered_content = template_loader.render_template('image: {{.Image}}', {'Image': 'registry/a&b<c>'})
        assert rendered_content == 'image: registry/a&b<c>'

    def test_render_template_missing_variables(self, template_loader):
        with pytest.raises(TemplateExecutionError, match="can't evaluate field Name") as exc_info:
            template_loader.render_template('Hello, {{.Name}}!', {'Another': 'something'})
        assert isinstance(exc_info.value.cause, UndefinedError)

    def test_render_values_not_dict(self, template_loader):
        template = template_loader.parse('Hello, {{.Name}}!')
        with pytest.raises(TypeError, match='Template values must be a dictionary'):
            template_loader.render(template, 'not_a_dict')

    def test_render_keeps_trailing_newline(self, template_loader):
        assert template_loader.render_template('a: {{.A}}\n', {'A': 'b'}) == 'a: b\n'

    def test_render_to_temp_file_success(self, template_loader):
        template = template_loader.parse('Hello, {{.Name}}!')
        temp_file_path = None
        with template_loader.render_to_temp_file(template, {'Name': 'Test'}) as f_path:
            temp_file_path = f_path
            assert temp_file_path.is_file()
            assert temp_file_path.name.startswith('rendered_template_')
            assert temp_file_path.suffix == '.tmp'
            assert temp_file_path.read_text() == 'Hello, Test!'

        assert not temp_file_path.exists()

    def test_render_to_temp_file_custom_name(self, template_loader):
        template = template_loader.parse('a: b\n')
        with template_loader.render_to_temp_file(template, {}, prefix='kubeadm-', suffix='.conf') as f_path:
            assert f_path.name.startswith('kubeadm-')
            assert f_path.suffix == '.conf'

    def test_render_to_temp_file_missing_variables(self, template_loader):
        template = template_loader.parse('Hello, {{.Name}}!')
        with pytest.raises(TemplateExecutionError):
            with template_loader.render_to_temp_file(template, {'Wrong': 'value'}):
                pass
