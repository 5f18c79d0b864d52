import json
from typer.testing import CliRunner
from app import app as cli_app

runner = CliRunner()


def invoke(cache_dir, *args):
    return runner.invoke(cli_app, ["--cache-dir", str(cache_dir), *args])


def test_set_then_get(tmp_path):
    r = invoke(tmp_path, "set", "test", '{"message": "success", "array": [1, 2, 3]}')
    assert r.exit_code == 0
    entry = json.loads(r.stdout)
    assert set(entry) == {"expiration", "data"}
    assert entry["expiration"].endswith("Z")

    r = invoke(tmp_path, "get", "test")
    assert r.exit_code == 0
    assert json.loads(r.stdout) == {"message": "success", "array": [1, 2, 3]}


def test_plain_string_value(tmp_path):
    r = invoke(tmp_path, "set", "greeting", "hello world")
    assert r.exit_code == 0
    r = invoke(tmp_path, "get", "greeting")
    assert json.loads(r.stdout) == "hello world"


def test_get_miss_exits_1(tmp_path):
    r = invoke(tmp_path, "get", "nonexistent")
    assert r.exit_code == 1


def test_get_corrupt_exits_2(tmp_path):
    from kv_cache.cache import FileCache
    FileCache(tmp_path)._path("bad").write_text("not json", encoding="utf-8")
    r = invoke(tmp_path, "get", "bad")
    assert r.exit_code == 2


def test_set_rejects_bad_ttl(tmp_path):
    r = invoke(tmp_path, "set", "k", "v", "--ttl", "0")
    assert r.exit_code == 2


def test_clear_and_clear_all(tmp_path):
    invoke(tmp_path, "set", "a", "1")
    invoke(tmp_path, "set", "b", "2")

    r = invoke(tmp_path, "clear", "a")
    assert r.exit_code == 0
    assert json.loads(r.stdout) is True

    r = invoke(tmp_path, "clear", "a")
    assert json.loads(r.stdout) is False

    r = invoke(tmp_path, "clear-all")
    assert r.exit_code == 0
    assert json.loads(r.stdout) is True
    assert invoke(tmp_path, "get", "b").exit_code == 1


def test_get_undecodable_exits_2(tmp_path):
    from kv_cache.cache import FileCache
    FileCache(tmp_path)._path("bad").write_bytes(b"\xff\xfe")
    r = invoke(tmp_path, "get", "bad")
    assert r.exit_code == 2


def test_set_rejects_huge_ttl(tmp_path):
    r = invoke(tmp_path, "set", "k", "v", "--ttl", "1e12")
    assert r.exit_code == 2
