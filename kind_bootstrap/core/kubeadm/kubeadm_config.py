from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from jinja2 import Template

from kind_bootstrap.core.kubeadm.configuration import ConfigData
from kind_bootstrap.core.template_loader import template_loader
from kind_bootstrap.core.utils import setup_logger

_logger = setup_logger('KubeadmConfig')

# Default kubeadm config template used by kind
DEFAULT_CONFIG_TEMPLATE = '''# config generated by kind
apiVersion: kubeadm.k8s.io/v1alpha2
kind: MasterConfiguration
clusterName: {{.ClusterName}}
# on docker for mac we have to expose the api server via port forward,
# so we need to ensure the cert is valid for localhost so we can talk
# to the cluster after rewriting the kubeconfig to point to localhost
apiServerCertSANs: [localhost]
kubernetesVersion: {{.KubernetesVersion}}
{{if ne .UnifiedControlPlaneImage ""}}
# optionally specify a unified control plane image
unifiedControlPlaneImage: {{.UnifiedControlPlaneImage}}:{{.DockerStableTag}}
{{end}}'''


def _prepare(template_source: str | None, data: ConfigData) -> tuple[Template, dict[str, Any]]:
    if not template_source:
        _logger.debug('No config template given, using the default kubeadm config template')
        template_source = DEFAULT_CONFIG_TEMPLATE

    template = template_loader.parse(template_source, name='kubeadm-config')

    # derive on a copy so the caller's data is left as supplied
    derived_data = data.derived()

    return template, derived_data.template_values()


def config(template_source: str | None, data: ConfigData) -> str:
    """Render a kubeadm config from the template and config data.

    Uses ``DEFAULT_CONFIG_TEMPLATE`` when ``template_source`` is empty.

    Raises:
        TemplateParseError: the template source is malformed.
        TemplateExecutionError: the template could not be evaluated against ``data``.
    """
    template, values = _prepare(template_source, data)

    _logger.info(f'Generating kubeadm config for cluster {data.cluster_name} '
                 f'(kubernetes {data.kubernetes_version})')

    return template_loader.render(template, values)


@contextmanager
def config_to_temp_file(template_source: str | None, data: ConfigData) -> Generator[Path, None, None]:
    template, values = _prepare(template_source, data)

    _logger.info(f'Writing kubeadm config for cluster {data.cluster_name} to a temporary file')

    with template_loader.render_to_temp_file(template, values, prefix='kubeadm-', suffix='.conf') as config_path:
        yield config_path
