"""Tests for CLI commands."""

import pytest

from techblog.cli import main


@pytest.fixture
def blog(site_dir, content_dir, write_doc):
    write_doc(content_dir, "eks.md", "title: EKS Ingress\ndate: 2024-01-02\ntags: [kubernetes, aws]", "load balancer setup")
    write_doc(content_dir, "pod.md", "title: Pod Identity\ndate: 2024-01-01\ntags: [aws, security]", "no secrets needed")
    return site_dir


class TestBuildCommand:
    """Test `techblog build`."""

    def test_success_exit_code(self, blog, capsys):
        assert main(["build", str(blog)]) == 0

        assert (blog / "_site" / "search.json").is_file()
        assert "Built 2 documents" in capsys.readouterr().out

    def test_output_override(self, blog, tmp_path):
        out = tmp_path / "public"

        assert main(["build", str(blog), "-o", str(out)]) == 0
        assert (out / "index.html").is_file()

    def test_fatal_error_exit_code(self, blog, content_dir, write_doc, capsys):
        bad = write_doc(content_dir, "bad.md", "title: No Date")

        assert main(["build", str(blog)]) == 1

        err = capsys.readouterr().err
        assert err.startswith("ERROR:")
        assert str(bad) in err
        assert "date" in err

    def test_drafts_flag(self, blog, content_dir, write_doc):
        write_doc(content_dir, "wip.md", "title: WIP\ndate: 2024-02-01\ndraft: true")

        main(["build", str(blog)])
        assert not (blog / "_site" / "2024/02/01/wip").exists()

        main(["build", str(blog), "--drafts"])
        assert (blog / "_site" / "2024/02/01/wip/index.html").is_file()

    def test_missing_explicit_config(self, blog, capsys):
        assert main(["build", str(blog), "--config", str(blog / "nope.yml")]) == 1
        assert "Config file not found" in capsys.readouterr().err


class TestSearchCommand:
    """Test `techblog search`."""

    def test_ranked_results(self, blog, capsys):
        main(["build", str(blog)])
        capsys.readouterr()

        assert main(["search", "aws", str(blog)]) == 0

        lines = capsys.readouterr().out.strip().splitlines()
        assert len(lines) == 2
        assert "EKS Ingress" in lines[0]
        assert "Pod Identity" in lines[1]

    def test_no_results(self, blog, capsys):
        main(["build", str(blog)])
        capsys.readouterr()

        assert main(["search", "zzz", str(blog)]) == 0
        assert "No matching posts." in capsys.readouterr().out

    def test_unavailable_index(self, blog, capsys):
        assert main(["search", "aws", str(blog)]) == 1
        assert "search unavailable" in capsys.readouterr().err
