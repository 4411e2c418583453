"""ArtifactFetcher 测试：下载、校验、缓存复用、解压、自举"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from fipsbuild.core.exceptions import (
    BuildConfigurationError,
    ChecksumMismatchError,
    DownloadError,
)
from fipsbuild.core.models import ExecutionContext, Platform
from fipsbuild.core.toolchain import ArtifactFetcher, PinRegistry
from fipsbuild.core.toolchain.fetcher import sha256_of
from fipsbuild.utils.shell import CommandResult

LINUX_X86 = Platform("Linux", "x86_64")
BASE_CTX = ExecutionContext(search_path=("/usr/bin", "/bin"))


@pytest.fixture()
def specs(toolchain):
    return PinRegistry(toolchain.manifest).tools_for(LINUX_X86)


@pytest.fixture()
def fetcher(tmp_path, downloader, executor) -> ArtifactFetcher:
    return ArtifactFetcher(
        tmp_path / "downloads", tmp_path / "toolchains",
        downloader=downloader, executor=executor,
    )


class TestFetchAll:
    def test_all_tools_extracted(self, fetcher, specs, tmp_path) -> None:
        artifacts = fetcher.fetch_all(specs, BASE_CTX)
        assert [a.spec.name for a in artifacts] == ["clang", "go", "ninja", "cmake"]
        for art in artifacts:
            assert art.root.is_dir()
            assert art.root.parent == tmp_path / "toolchains"
            assert (art.bin_dir / art.spec.executable).is_file()
            assert sha256_of(art.archive) == art.sha256

    def test_ninja_bootstrapped_with_host_python(self, fetcher, specs, executor) -> None:
        artifacts = fetcher.fetch_all(specs, BASE_CTX)
        ninja = {a.spec.name: a for a in artifacts}["ninja"]
        boots = [(c, ctx) for c, ctx in executor.calls if c[1:] == ["configure.py", "--bootstrap"]]
        assert len(boots) == 1
        cmd, ctx = boots[0]
        assert cmd[0] == sys.executable
        assert ctx.work_dir == str(ninja.root)

    def test_ninja_installed_into_own_bin(self, fetcher, specs) -> None:
        ninja = {a.spec.name: a for a in fetcher.fetch_all(specs, BASE_CTX)}["ninja"]
        assert ninja.bin_dir == ninja.root / "bin"
        assert [p.name for p in ninja.bin_dir.iterdir()] == ["ninja"]
        assert (ninja.root / "configure.py").is_file()

    def test_bootstrap_without_product(self, fetcher, specs) -> None:
        ninja_spec = specs[2]
        art = fetcher.extract(ninja_spec, fetcher.download(ninja_spec))
        (art.root / "ninja").unlink()
        with pytest.raises(BuildConfigurationError, match="未生成"):
            fetcher.bootstrap(art, BASE_CTX)

    def test_download_dir_unusable(self, specs, downloader, executor, tmp_path) -> None:
        blocked = tmp_path / "downloads"
        blocked.write_text("not a directory")
        fetcher = ArtifactFetcher(
            blocked, tmp_path / "toolchains", downloader=downloader, executor=executor,
        )
        with pytest.raises(DownloadError, match="下载目录"):
            fetcher.fetch_all(specs, BASE_CTX)

    def test_bootstrap_failure(self, fetcher, specs, executor) -> None:
        executor.overrides[f"{Path(sys.executable).name} configure.py"] = CommandResult(1, "", "no c++")
        with pytest.raises(BuildConfigurationError, match="ninja 自举"):
            fetcher.fetch_all(specs, BASE_CTX)

    def test_tampered_archive_aborts_before_any_extraction(
        self, fetcher, specs, toolchain, tmp_path, executor,
    ) -> None:
        toolchain.tamper("cmake")
        with pytest.raises(ChecksumMismatchError, match="cmake"):
            fetcher.fetch_all(specs, BASE_CTX)
        assert not (tmp_path / "toolchains").exists()
        assert executor.calls == []
        # 被篡改的文件不保留
        assert not list((tmp_path / "downloads" / "cmake-3.20.1").iterdir())

    def test_download_failure(self, fetcher, specs, toolchain) -> None:
        del toolchain.payloads[toolchain.urls["go"]]
        with pytest.raises(DownloadError, match="go"):
            fetcher.fetch_all(specs, BASE_CTX)


class TestDownloadCache:
    def test_cache_hit_skips_network(self, fetcher, specs, downloader) -> None:
        clang = specs[0]
        first = fetcher.download(clang)
        second = fetcher.download(clang)
        assert first == second
        assert downloader.calls == [clang.url]

    def test_tampered_cache_rejected(self, fetcher, specs, downloader) -> None:
        clang = specs[0]
        path = fetcher.download(clang)
        path.write_bytes(b"corrupted")
        with pytest.raises(ChecksumMismatchError):
            fetcher.download(clang)
        assert not path.exists()
        assert downloader.calls == [clang.url]

    def test_unpinned_digest_not_downloaded(self, fetcher, specs, downloader) -> None:
        from dataclasses import replace
        unpinned = replace(specs[3], sha256="")
        with pytest.raises(ChecksumMismatchError, match="未固定校验和"):
            fetcher.download(unpinned)
        assert downloader.calls == []

    def test_non_https_url_rejected(self, fetcher, specs, downloader) -> None:
        from dataclasses import replace
        insecure = replace(specs[1], url="http://dl.test/go.tar.gz")
        with pytest.raises(DownloadError, match="https"):
            fetcher.download(insecure)
        assert downloader.calls == []


class TestExtract:
    def test_layout_mismatch(self, fetcher, specs) -> None:
        from dataclasses import replace
        wrong = replace(specs[1], root_dir="go-unexpected")
        archive = fetcher.download(specs[1])
        with pytest.raises(DownloadError, match="go-unexpected"):
            fetcher.extract(wrong, archive)

    def test_stale_extraction_replaced(self, fetcher, specs, tmp_path) -> None:
        go = specs[1]
        stale = tmp_path / "toolchains" / go.root_dir / "bin" / "stale"
        stale.parent.mkdir(parents=True)
        stale.write_text("old")
        fetcher.extract(go, fetcher.download(go))
        assert not stale.exists()

    def test_not_a_tarball(self, fetcher, specs, tmp_path) -> None:
        bogus = tmp_path / "bogus.tar.gz"
        bogus.write_bytes(b"not a tar")
        with pytest.raises(DownloadError, match="解压失败"):
            fetcher.extract(specs[0], bogus)
