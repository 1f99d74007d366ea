import pytest

from crio_get.config import DEFAULT_MAX_PAGES, InstallPaths, load_config
from crio_get.errors import ArgumentError


def test_defaults_follow_prefix() -> None:
    paths = InstallPaths.from_env({})

    assert paths.bindir == "/usr/local/bin"
    assert paths.systemddir == "/usr/local/lib/systemd/system"
    assert paths.libexec_crio_dir == "/usr/libexec/crio"
    assert paths.containers_registries_confd_dir == "/etc/containers/registries.conf.d"
    assert paths.destdir == ""


def test_env_overrides_cascade() -> None:
    paths = InstallPaths.from_env({"PREFIX": "/usr", "ETCDIR": "/srv/etc", "BINDIR": "/sbin"})

    assert paths.bindir == "/sbin"
    assert paths.mandir == "/usr/share/man"
    assert paths.cnidir == "/srv/etc/cni/net.d"
    assert "destdir" not in paths.as_template_vars()


def test_load_config_reads_env_once() -> None:
    cfg = load_config(
        arch="arm64",
        version="v1.30.0",
        bucket="my-bucket",
        env={"GITHUB_TOKEN": "tok", "CRIO_GET_MAX_PAGES": "7", "SELINUX": "0"},
    )

    assert cfg.target.arch == "arm64" and cfg.target.version == "v1.30.0"
    assert cfg.base_url == "https://storage.googleapis.com/my-bucket"
    assert cfg.github_token == "tok"
    assert "tok" not in repr(cfg)
    assert cfg.max_pages == 7
    assert cfg.selinux is False


def test_load_config_defaults() -> None:
    cfg = load_config(arch="amd64", env={})

    assert cfg.base_url == "https://storage.googleapis.com/cri-o"
    assert cfg.target.version == ""
    assert cfg.max_pages == DEFAULT_MAX_PAGES
    assert cfg.selinux is None


@pytest.mark.parametrize("env", [{"CRIO_GET_MAX_PAGES": "many"}, {"CRIO_GET_MAX_PAGES": "0"}])
def test_bad_max_pages_is_argument_error(env) -> None:
    with pytest.raises(ArgumentError):
        load_config(arch="amd64", env=env)


def test_bad_bucket_is_argument_error() -> None:
    with pytest.raises(ArgumentError):
        load_config(arch="amd64", bucket="a/b", env={})
