"""
Shared fixtures: a small attribute catalog loaded from YAML, the in-memory
catalog service over it, and a controllable clock for the fetch layer.
"""

import textwrap

import pytest

from pimattr.core.registries import RegistryManager
from pimattr.io.loaders.attribute_loader import load_attributes
from pimattr.services.catalog_service import InMemoryAttributeService

CATALOG = """
groups:
  - id: appearance
    name: Appearance

attributes:
  - id: red
    code: red
    type: readonly
    name: Red
  - id: blue
    code: blue
    type: readonly
    name: Blue
  - id: weight
    code: weight
    type: number
    name: Weight
    validations:
      min: 0
      max: 100
  - id: color
    code: color
    type: select
    name: Color
    attribute_group: appearance
    options: [red, blue]
"""


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def write_yaml(path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(content), encoding="utf-8")


@pytest.fixture
def catalog_dir(tmp_path):
    directory = tmp_path / "attributes"
    write_yaml(directory / "catalog.yaml", CATALOG)
    return directory


@pytest.fixture
def registries(catalog_dir) -> RegistryManager:
    rm = RegistryManager()
    load_attributes(str(catalog_dir), rm)
    return rm


@pytest.fixture
def service(registries) -> InMemoryAttributeService:
    return InMemoryAttributeService(registries)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
