"""Send mode: send one message (optionally with attachments) from the command line."""

from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape

from zoho_mailer.errors import ConfigurationError, ZohoMailerError

from .shared import console, get_client, logger


def send(
    to: str = typer.Option(..., "--to", "-t", help="Recipient(s), comma separated"),
    subject: str = typer.Option(..., "--subject", "-s", help="Subject line"),
    body: str = typer.Option(..., "--body", "-b", help="Message body (HTML allowed)"),
    cc: Optional[str] = typer.Option(None, "--cc", help="Cc recipient(s)"),
    bcc: Optional[str] = typer.Option(None, "--bcc", help="Bcc recipient(s)"),
    sender: Optional[str] = typer.Option(None, "--from", help="Override ZOHO_FROM_EMAIL"),
    attach: Optional[list[Path]] = typer.Option(None, "--attach", "-a", help="File to upload and attach"),
    receipt: bool = typer.Option(False, "--receipt", help="Ask for a read receipt"),
) -> None:
    """Send an email through Zoho Mail."""
    log = logger.bind(command="send", to=to)
    log.info("send.start", attachments=len(attach or []))

    try:
        client = get_client()
    except ConfigurationError as e:
        console.print(f"[red]Config error: {escape(str(e))}[/red]")
        log.error("send.config_error", error=str(e))
        raise typer.Exit(1) from e

    with client:
        attachments = []
        for path in attach or []:
            try:
                attachments.append(client.upload_attachment(path))
            except (ZohoMailerError, OSError) as e:
                console.print(f"[red]Upload failed for {path}: {escape(str(e))}[/red]")
                log.error("send.upload_failed", path=str(path), error=str(e))
                raise typer.Exit(1) from e
            console.print(f"[dim]Uploaded {path.name}[/dim]")

        result = client.send_email(
            {
                "from": sender,
                "to": to,
                "cc": cc,
                "bcc": bcc,
                "subject": subject,
                "body": body,
                "receipt": receipt,
                "attachments": attachments or None,
            }
        )

    if not result:
        console.print(f"[red]Send failed ({result.error_kind.value}): {escape(result.error or '')}[/red]")
        log.error("send.failed", error_kind=result.error_kind.value)
        raise typer.Exit(1)
    console.print(f"[green]Sent to {to}.[/green]")
    log.info("send.ok")
