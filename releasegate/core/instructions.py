"""Install instruction rendering.

Pure formatting: given a publish receipt, produce the shell commands a
user runs to install the exact revision, or whatever the branch or pull
request currently points to.
"""

from __future__ import annotations

from releasegate.models.publish import PointerKind, PublishAddress, PublishReceipt

_INSTALL_COMMAND = "curl --proto '=https' --tlsv1.2 -sSf -L {url} | sh -s -- install"

_POINTER_NOUN: dict[PointerKind, str] = {
    PointerKind.BRANCH: "branch",
    PointerKind.PR: "PR",
}


def install_url(install_host: str, product: str, key: str) -> str:
    """Return ``https://<install_host>/<product>/<key>``."""
    if not install_host or not product:
        raise ValueError("install_host and product must not be empty")
    return f"https://{install_host.strip('/')}/{product.strip('/')}/{key}"


def install_command(url: str) -> str:
    return _INSTALL_COMMAND.format(url=url)


def render_instructions(
    receipt: PublishReceipt | PublishAddress,
    install_host: str,
    product: str,
) -> str:
    """Render install instructions for every address in *receipt*.

    Always includes the revision-pinned command; adds the branch or PR
    command when the address has a pointer.

    Raises
    ------
    ValueError
        If *install_host* or *product* is empty.
    """
    address = receipt.address if isinstance(receipt, PublishReceipt) else receipt

    lines = [
        "This commit can be installed by running the following command:",
        "",
        install_command(install_url(install_host, product, address.revision_key)),
    ]
    if address.pointer_kind is not None and address.pointer_key is not None:
        noun = _POINTER_NOUN[address.pointer_kind]
        lines += [
            "",
            f"The latest commit from this {noun} can be installed by running "
            "the following command:",
            "",
            install_command(install_url(install_host, product, address.pointer_key)),
        ]
    return "\n".join(lines) + "\n"
