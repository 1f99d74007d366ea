from crio_get.artifacts import locate

BASE = "https://storage.googleapis.com/cri-o"


def test_locate_derives_all_urls() -> None:
    a = locate(BASE, "amd64", "v1.2.3")

    assert a.tarball_url == BASE + "/artifacts/cri-o.amd64.v1.2.3.tar.gz"
    assert a.tarball_sig_url == BASE + "/artifacts/cri-o.amd64.v1.2.3.tar.gz.sig"
    assert a.tarball_cert_url == BASE + "/artifacts/cri-o.amd64.v1.2.3.tar.gz.cert"
    assert a.sbom_url == BASE + "/artifacts/cri-o.amd64.v1.2.3.tar.gz.spdx"
    assert a.sbom_sig_url == BASE + "/artifacts/cri-o.amd64.v1.2.3.tar.gz.spdx.sig"
    assert a.sbom_cert_url == BASE + "/artifacts/cri-o.amd64.v1.2.3.tar.gz.spdx.cert"


def test_locate_is_deterministic_and_strips_trailing_slash() -> None:
    assert locate(BASE + "/", "arm64", "abc") == locate(BASE, "arm64", "abc")
    assert len(set(locate(BASE, "arm64", "abc").all_files)) == 6
