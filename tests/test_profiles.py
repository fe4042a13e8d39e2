"""
Tests for profile storage, profile service and credential resolution
"""
import dataclasses
import json

import pytest

from shellpair.core.exceptions import ProfileError
from shellpair.core.interfaces import SecretStore
from shellpair.domain.session.credentials import CredentialResolver
from shellpair.domain.session.models import AUTH_PRIVATE_KEY, HostParams, SessionProfile
from shellpair.domain.session.profiles import ProfileService
from shellpair.infrastructure.secrets.memory_store import MemorySecretStore
from shellpair.infrastructure.state.profile_store import FileProfileStore


class BrokenSecretStore(SecretStore):
    async def lookup(self, profile_id):
        raise RuntimeError("keyring locked")

    async def store(self, profile_id, secret):
        raise RuntimeError("keyring locked")

    async def delete(self, profile_id):
        raise RuntimeError("keyring locked")


class TestSessionProfile:
    def test_create_assigns_id(self):
        profile = SessionProfile.create(host="db.internal", username="ops")

        assert len(profile.id) == 32
        assert profile.title == "ops@db.internal"
        assert str(profile.target) == "ops@db.internal:22"

    @pytest.mark.parametrize("fields", [
        {"host": ""},
        {"username": ""},
        {"port": 0},
        {"port": 70000},
        {"auth_mode": "kerberos"},
        {"auth_mode": AUTH_PRIVATE_KEY, "private_key": None},
    ])
    def test_validate_rejects(self, profile, fields):
        with pytest.raises(ProfileError):
            dataclasses.replace(profile, **fields).validate()

    def test_dict_round_trip(self, profile):
        tagged = dataclasses.replace(profile, tags=frozenset({"prod", "db"}), group="east")

        assert SessionProfile.from_dict(tagged.to_dict()) == tagged
        assert tagged.to_dict()["tags"] == ["db", "prod"]

    def test_from_dict_missing_field(self):
        with pytest.raises(ProfileError):
            SessionProfile.from_dict({"id": "x", "host": "h"})

    def test_host_params_to_profile(self):
        params = HostParams(host="h", username="u", port=2222, private_key="~/.ssh/id_ed25519")

        profile = params.to_profile(save_password=True)

        assert profile.auth_mode == AUTH_PRIVATE_KEY
        assert profile.port == 2222
        assert profile.save_password

    @pytest.mark.parametrize("fields", [
        {"host": ""},
        {"username": ""},
        {"port": 0},
        {"port": 65536},
    ])
    def test_host_params_validate(self, fields):
        params = dataclasses.replace(HostParams(host="h", username="u"), **fields)

        with pytest.raises(ProfileError):
            params.validate()

        HostParams(host="h", username="u", port=65535).validate()


class TestFileProfileStore:
    def test_save_get_list_delete(self, tmp_path, profile):
        store = FileProfileStore(tmp_path / "profiles")

        store.save(profile)

        assert store.get(profile.id) == profile
        assert store.list() == [profile]
        store.delete(profile.id)
        assert store.get(profile.id) is None
        store.delete(profile.id)

    def test_skips_unreadable_files(self, tmp_path, profile):
        store = FileProfileStore(tmp_path)
        store.save(profile)
        (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")

        assert store.list() == [profile]

    def test_rejects_path_ids(self, tmp_path):
        store = FileProfileStore(tmp_path)

        with pytest.raises(ProfileError):
            store.get("../etc/passwd")

    def test_no_secret_on_disk(self, tmp_path, profile):
        store = FileProfileStore(tmp_path)
        store.save(dataclasses.replace(profile, save_password=True))

        data = json.loads((tmp_path / f"{profile.id}.json").read_text(encoding="utf-8"))

        assert "password" not in data
        assert "secret" not in data


@pytest.mark.asyncio
class TestCredentialResolver:
    async def test_no_lookup_when_not_saved(self, profile):
        secrets = MemorySecretStore({profile.id: "s3cret"})

        assert await CredentialResolver(secrets).resolve(profile) is None
        assert secrets.lookups == 0

    async def test_lookup_when_saved(self, profile):
        secrets = MemorySecretStore({profile.id: "s3cret"})
        saved = dataclasses.replace(profile, save_password=True)

        assert await CredentialResolver(secrets).resolve(saved) == "s3cret"
        assert secrets.lookups == 1

    async def test_missing_secret_is_none(self, profile):
        saved = dataclasses.replace(profile, save_password=True)

        assert await CredentialResolver(MemorySecretStore()).resolve(saved) is None

    async def test_store_failure_is_none(self, profile):
        saved = dataclasses.replace(profile, save_password=True)

        assert await CredentialResolver(BrokenSecretStore()).resolve(saved) is None

    async def test_forget_swallows_store_failure(self):
        await CredentialResolver(BrokenSecretStore()).forget("p1")


@pytest.mark.asyncio
class TestProfileService:
    async def test_save_stores_secret(self, tmp_path, profile):
        secrets = MemorySecretStore()
        service = ProfileService(FileProfileStore(tmp_path), CredentialResolver(secrets))
        saved = dataclasses.replace(profile, save_password=True)

        await service.save(saved, "s3cret")

        assert await secrets.lookup(profile.id) == "s3cret"
        assert service.get(profile.id) == saved

    async def test_turning_off_save_password_forgets_secret(self, tmp_path, profile):
        secrets = MemorySecretStore({profile.id: "old"})
        service = ProfileService(FileProfileStore(tmp_path), CredentialResolver(secrets))

        await service.save(profile, "ignored")

        assert await secrets.lookup(profile.id) is None

    async def test_delete_removes_secret(self, tmp_path, profile):
        secrets = MemorySecretStore({profile.id: "s3cret"})
        service = ProfileService(FileProfileStore(tmp_path), CredentialResolver(secrets))
        await service.save(dataclasses.replace(profile, save_password=True))

        await service.delete(profile.id)

        assert service.list() == []
        assert await secrets.lookup(profile.id) is None
        with pytest.raises(ProfileError):
            service.get(profile.id)

    async def test_find_by_name(self, tmp_path, profile):
        service = ProfileService(FileProfileStore(tmp_path), CredentialResolver(MemorySecretStore()))
        await service.save(profile)

        assert service.find("build box") == profile
        assert service.find("bob@10.0.0.5") == profile
        assert service.find(profile.id) == profile
        assert service.find("nobody") is None

    async def test_list_sorted_by_group_then_title(self, tmp_path):
        service = ProfileService(FileProfileStore(tmp_path), CredentialResolver(MemorySecretStore()))
        web = SessionProfile.create(host="web", username="u", group="prod")
        alpha = SessionProfile.create(host="alpha", username="u")
        db = SessionProfile.create(host="db", username="u", group="prod")
        for p in (web, alpha, db):
            await service.save(p)

        assert [p.host for p in service.list()] == ["alpha", "db", "web"]
