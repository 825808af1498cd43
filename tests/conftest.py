"""Shared pytest fixtures and configuration."""

import threading
from typing import List

from pytest import fixture

from manifest_jinja.templates.fs import FileCollection, MemoryFS

DEPLOYMENT_TEMPLATE = """\
apiVersion: apps/v1
kind: Deployment
metadata:
  name: {{ name }}
  namespace: {{ namespace }}
spec:
  replicas: {{ replicas }}
"""

SERVICE_TEMPLATE = """\
apiVersion: v1
kind: Service
metadata:
  name: {{ name }}
  namespace: {{ namespace }}
spec:
  ports:
    - port: {{ port | default(80) }}
"""

CONFIGMAP_TEMPLATE = """\
apiVersion: v1
kind: ConfigMap
metadata:
  name: {{ name }}-config
  namespace: {{ namespace }}
data:
  greeting: {{ greeting | quote }}
"""


class CountingFS(FileCollection):
    """File collection wrapper that counts template enumerations."""

    def __init__(self, inner: FileCollection) -> None:
        self.inner = inner
        self.glob_calls = 0
        self._lock = threading.Lock()

    def list_files(self) -> List[str]:
        return self.inner.list_files()

    def read_text(self, name: str) -> str:
        return self.inner.read_text(name)

    def glob(self, pattern: str) -> List[str]:
        with self._lock:
            self.glob_calls += 1
        return super().glob(pattern)


@fixture
def default_values():
    """Values every template in the manifest fixtures needs."""
    return {
        "name": "web",
        "namespace": "default",
        "replicas": 2,
        "greeting": "hello",
    }


@fixture
def manifests_fs():
    """In-memory collection with three manifest templates and a helper."""
    return MemoryFS(
        {
            "deployment.yaml.j2": DEPLOYMENT_TEMPLATE,
            "service.yaml.j2": SERVICE_TEMPLATE,
            "configmap.yaml.j2": CONFIGMAP_TEMPLATE,
            "README.md": "not a template",
        }
    )


@fixture
def counting_fs(manifests_fs):
    """Wrap the manifest collection to count compilations."""
    return CountingFS(manifests_fs)


@fixture
def manifests_dir(tmp_path):
    """On-disk directory with manifest templates."""
    (tmp_path / "deployment.yaml.j2").write_text(DEPLOYMENT_TEMPLATE)
    (tmp_path / "service.yaml.j2").write_text(SERVICE_TEMPLATE)
    nested = tmp_path / "extra"
    nested.mkdir()
    (nested / "configmap.yaml.j2").write_text(CONFIGMAP_TEMPLATE)
    return tmp_path


@fixture
def counting_fs_factory():
    """Provide the CountingFS wrapper class."""
    return CountingFS
