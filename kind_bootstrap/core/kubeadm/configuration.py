from __future__ import annotations

import copy
from collections.abc import Callable
from dataclasses import dataclass, field, fields
from typing import Any


@dataclass
class AutoDerivedConfigData:
    """Fields filled in by ``ConfigData.derive_fields`` when left empty.

    Every field here needs an entry in ``DERIVATIONS``.
    """

    # derived from kubernetes_version
    docker_stable_tag: str = field(default='', metadata={'template_key': 'DockerStableTag'})


@dataclass
class ConfigData:
    """Values supplied to the kubeadm config template."""

    cluster_name: str = field(metadata={'template_key': 'ClusterName'})
    kubernetes_version: str = field(metadata={'template_key': 'KubernetesVersion'})
    # optional, '' means not set
    unified_control_plane_image: str = field(default='', metadata={'template_key': 'UnifiedControlPlaneImage'})
    auto_derived: AutoDerivedConfigData = field(
        default_factory=AutoDerivedConfigData,
        metadata={'template_key': 'AutoDerivedConfigData', 'promoted': True},
    )

    @property
    def docker_stable_tag(self) -> str:
        return self.auto_derived.docker_stable_tag

    def derive_fields(self) -> None:
        for derived_field in fields(self.auto_derived):
            if getattr(self.auto_derived, derived_field.name) == '':
                setattr(self.auto_derived, derived_field.name, DERIVATIONS[derived_field.name](self))

    def derived(self) -> ConfigData:
        derived_data = copy.deepcopy(self)
        derived_data.derive_fields()

        return derived_data

    def template_values(self) -> dict[str, Any]:
        """Template context keyed by template field names.

        Fields of promoted sub-objects are also exposed at the top level, so
        ``.DockerStableTag`` and ``.AutoDerivedConfigData.DockerStableTag``
        both resolve. Outer fields win on a name clash.
        """
        values = {}
        promoted = {}

        for data_field in fields(self):
            value = getattr(self, data_field.name)
            if data_field.metadata.get('promoted'):
                value = _template_values(value)
                promoted.update(value)
            values[data_field.metadata['template_key']] = value

        for key, value in promoted.items():
            values.setdefault(key, value)

        return values


def _template_values(data: Any) -> dict[str, Any]:
    return {data_field.metadata['template_key']: getattr(data, data_field.name) for data_field in fields(data)}


DERIVATIONS: dict[str, Callable[[ConfigData], str]] = {
    'docker_stable_tag': lambda config_data: config_data.kubernetes_version.replace('+', '_'),
}
