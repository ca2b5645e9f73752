from __future__ import annotations

from dataclasses import replace

import pytest

from conftest import CODEBERG_GUID, GITHUB_GUID, GITLAB_GUID, UNKNOWN_GUID
from dex_data_providers.core.registry import DataSourceKind, DataSourceRegistry, RegistryLoadError
from dex_data_providers.providers import GitHubDataSourceAdaptee, GiteaDataSourceAdaptee, build_adaptee
from dex_data_providers.services import DataProviderLoader


@pytest.fixture()
def loader(registry, secrets) -> DataProviderLoader:
    return DataProviderLoader.from_registry(registry, secrets)


def test_loader_builds_one_adaptee_per_descriptor(loader):
    assert len(loader) == 3
    assert {adaptee.guid for adaptee in loader.get_all_data_sources()} == {GITHUB_GUID, GITLAB_GUID, CODEBERG_GUID}


def test_lookup_by_guid_accepts_any_guid_spelling(loader):
    adaptee = loader.get_data_source_by_guid("{" + GITHUB_GUID.upper() + "}")

    assert isinstance(adaptee, GitHubDataSourceAdaptee)
    assert adaptee.guid == GITHUB_GUID


@pytest.mark.parametrize("guid", [UNKNOWN_GUID, "not-a-guid", ""])
def test_lookup_of_unknown_or_malformed_guid_returns_none(loader, guid):
    assert loader.get_data_source_by_guid(guid) is None


def test_lookup_by_name_matches_display_name_or_key(loader):
    assert isinstance(loader.get_data_source_by_name("Codeberg"), GiteaDataSourceAdaptee)
    assert loader.get_data_source_by_name(" GITHUB ").guid == GITHUB_GUID
    assert loader.get_data_source_by_name("bitbucket") is None


def test_snapshot_is_unaffected_by_reload(loader):
    before = loader.get_all_data_sources()
    github = loader.get_data_source_by_guid(GITHUB_GUID)

    loader.reload([github])

    assert len(before) == 3
    assert loader.get_all_data_sources() == (github,)
    assert loader.get_data_source_by_guid(CODEBERG_GUID) is None


def test_duplicate_guid_is_rejected_and_keeps_previous_configuration(loader):
    github = loader.get_data_source_by_guid(GITHUB_GUID)

    with pytest.raises(RegistryLoadError, match="configured twice"):
        loader.reload([github, github])

    assert len(loader) == 3


def test_empty_loader():
    loader = DataProviderLoader()

    assert len(loader) == 0
    assert loader.get_all_data_sources() == ()


def test_unsupported_provider_kind_combination_is_rejected(registry, secrets):
    public_github = replace(
        registry.get(GITHUB_GUID),
        guid="11111111-1111-4111-8111-111111111111",
        key="github_public",
        kind=DataSourceKind.PUBLIC,
    )

    with pytest.raises(RegistryLoadError, match="unsupported provider"):
        build_adaptee(public_github, secrets)

    custom = DataSourceRegistry()
    custom.register(public_github)
    with pytest.raises(RegistryLoadError):
        DataProviderLoader.from_registry(custom, secrets)
