"""Tests for install instruction rendering."""

from __future__ import annotations

import pytest

from releasegate.core.instructions import install_command, install_url, render_instructions
from releasegate.models.publish import PointerKind, PublishAddress, PublishReceipt

HOST = "install.determinate.systems"


class TestInstallUrl:
    def test_url(self):
        assert install_url(HOST, "nix", "rev/abc123") == f"https://{HOST}/nix/rev/abc123"

    def test_strips_slashes(self):
        assert install_url(f"{HOST}/", "/nix/", "pr/4") == f"https://{HOST}/nix/pr/4"

    @pytest.mark.parametrize(("host", "product"), [("", "nix"), (HOST, "")])
    def test_empty_parts_rejected(self, host, product):
        with pytest.raises(ValueError):
            install_url(host, product, "rev/abc123")

    def test_command(self):
        assert install_command("https://x/y") == (
            "curl --proto '=https' --tlsv1.2 -sSf -L https://x/y | sh -s -- install"
        )


class TestRenderInstructions:
    def test_branch_instructions(self):
        address = PublishAddress(
            revision="abc123", pointer_kind=PointerKind.BRANCH, pointer_name="main"
        )
        text = render_instructions(PublishReceipt(address=address), HOST, "nix")

        assert text.startswith("This commit can be installed")
        assert install_command(f"https://{HOST}/nix/rev/abc123") in text
        assert "latest commit from this branch" in text
        assert install_command(f"https://{HOST}/nix/branch/main") in text
        assert text.endswith("\n")

    def test_pr_instructions(self):
        address = PublishAddress(
            revision="abc123", pointer_kind=PointerKind.PR, pointer_name="42"
        )
        text = render_instructions(address, HOST, "nix")
        assert "latest commit from this PR" in text
        assert f"https://{HOST}/nix/pr/42" in text

    def test_revision_only(self):
        text = render_instructions(PublishAddress(revision="abc123"), HOST, "nix")
        assert text.count("curl ") == 1
        assert "latest commit" not in text

    def test_pure(self):
        address = PublishAddress(revision="abc123")
        assert render_instructions(address, HOST, "nix") == render_instructions(
            address, HOST, "nix"
        )

    def test_malformed_host_rejected(self):
        with pytest.raises(ValueError):
            render_instructions(PublishAddress(revision="abc123"), "", "nix")
