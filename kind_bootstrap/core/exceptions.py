class KubeadmConfigException(Exception):
    pass


class TemplateParseError(KubeadmConfigException):
    """The template source is not a valid template."""

    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(f'failed to parse config template: {cause}')


class TemplateExecutionError(KubeadmConfigException):
    """The template parsed, but evaluating it against the config data failed."""

    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(f'error executing config template: {cause}')
