from __future__ import annotations

import pytest

from lead_importer.storage.local_storage import LocalFileStorage
from lead_importer.workers import __main__ as entrypoint


def test_parse_args_flags():
    args = entrypoint.parse_args(["--once", "--verbose"])
    assert args.once is True
    assert args.verbose is True

    args = entrypoint.parse_args([])
    assert args.once is False


def test_local_backend_builds_local_storage(settings, tmp_path):
    settings.local_storage_dir = str(tmp_path)
    assert isinstance(entrypoint.build_storage(settings), LocalFileStorage)


def test_supabase_backend_requires_credentials(settings):
    settings.storage_backend = "supabase"
    settings.supabase_url = None
    settings.supabase_service_role_key = None

    with pytest.raises(entrypoint.ConfigurationError):
        entrypoint.build_storage(settings)


def test_disabled_worker_exits_cleanly(settings, monkeypatch):
    settings.worker_enabled = False
    monkeypatch.setattr(entrypoint, "get_settings", lambda: settings)

    def no_engine(_settings):
        raise AssertionError("engine created for a disabled worker")

    monkeypatch.setattr(entrypoint, "create_engine_from_settings", no_engine)

    assert entrypoint.main(["--once"]) == 0


def test_missing_storage_credentials_exit_with_code_2(settings, monkeypatch):
    settings.storage_backend = "supabase"
    settings.supabase_url = None
    settings.supabase_service_role_key = None
    monkeypatch.setattr(entrypoint, "get_settings", lambda: settings)

    assert entrypoint.main(["--once"]) == 2
