"""Command line interface for the media newsletter."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import click

# Heavy dependencies are imported inside the commands so that ``cli`` stays
# importable for help output and command registration tests.

logger = logging.getLogger(__name__)


def _load_settings(ctx: click.Context):
    from media_newsletter.models.settings import Settings

    settings = Settings(debug=ctx.obj.get("debug", False))
    if not settings.debug:
        logging.getLogger().setLevel(settings.log_level.upper())
    return settings


def _write_or_echo(html: str, output: Optional[str]) -> None:
    if output:
        Path(output).write_text(html, encoding="utf-8")
        click.echo(f"📄 Newsletter HTML written to {output}")
    else:
        click.echo(html)


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug mode")
@click.pass_context
def cli(ctx: click.Context, debug: bool) -> None:
    """AI media newsletter CLI.

    Collects recently added Jellyfin media, writes newsletter copy
    with an LLM and emails it to subscribers.
    """
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    log_level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(level=log_level, force=True)
    logger.debug("Debug mode enabled")


@cli.command()
@click.option("--dry-run", is_flag=True, help="Generate the newsletter without emailing it")
@click.option("--output", type=click.Path(dir_okay=False), help="Write dry-run HTML to a file")
@click.pass_context
def generate(ctx: click.Context, dry_run: bool, output: Optional[str]) -> None:
    """Generate this period's newsletter and send it to all recipients."""
    from media_newsletter.core.newsletter import NewsletterService

    settings = _load_settings(ctx)
    service = NewsletterService(settings)

    if dry_run:
        logger.info("🔍 DRY RUN MODE - No email will be sent")
        html = asyncio.run(service.generate_html())
        _write_or_echo(html, output)
        return

    report = asyncio.run(service.generate_and_send())
    if report.skipped:
        click.echo(f"⏭️  Newsletter skipped: {report.reason}")
        return

    click.echo(
        f"📧 Newsletter with {report.item_count} item(s) sent to "
        f"{report.success_count} recipient(s), {report.failure_count} failure(s)"
    )
    if not report.succeeded:
        click.echo("❌ Newsletter could not be delivered to any recipient")
        sys.exit(1)


@cli.command()
@click.option("--output", type=click.Path(dir_okay=False), help="Write HTML to a file")
@click.pass_context
def preview(ctx: click.Context, output: Optional[str]) -> None:
    """Render the newsletter HTML without sending it."""
    from media_newsletter.core.newsletter import NewsletterService

    service = NewsletterService(_load_settings(ctx))
    _write_or_echo(asyncio.run(service.generate_html()), output)


@cli.command(name="test-email")
@click.argument("recipient")
@click.pass_context
def test_email(ctx: click.Context, recipient: str) -> None:
    """Send a sample newsletter to RECIPIENT."""
    from media_newsletter.core.newsletter import NewsletterService
    from media_newsletter.models.validation import is_valid_email

    if not is_valid_email(recipient):
        click.echo(f"❌ Invalid email address: {recipient}")
        sys.exit(2)

    service = NewsletterService(_load_settings(ctx))
    if asyncio.run(service.send_test_email(recipient)):
        click.echo(f"✅ Test email sent to {recipient}")
    else:
        click.echo(f"❌ Failed to send test email to {recipient}")
        sys.exit(1)


@cli.command()
@click.pass_context
def health(ctx: click.Context) -> None:
    """Check configuration and service connectivity."""
    from media_newsletter.core.newsletter import NewsletterService

    settings = _load_settings(ctx)
    logger.info("🔍 Checking system health...")

    service = NewsletterService(settings)
    connections = asyncio.run(service.test_connections())

    click.echo("🌐 Connection status:")
    for service_name, status in connections.items():
        status_icon = "✅" if status else "❌"
        click.echo(f"   - {service_name.title()}: {status_icon}")

    ai_ready = settings.provider_config().is_configured()
    click.echo(f"🤖 AI provider ({settings.ai_provider}): {'✅' if ai_ready else '❌ fallback content only'}")

    if all(connections.values()):
        click.echo("✅ System healthy - all services reachable")
    else:
        click.echo("⚠️  Some services are unavailable")


@cli.command()
@click.pass_context
def config(ctx: click.Context) -> None:
    """Show current configuration without secret values."""
    settings = _load_settings(ctx)

    click.echo("\n📋 Media Newsletter Configuration\n")
    click.echo(f"Debug Mode: {settings.debug}")
    click.echo(f"Log Level: {settings.log_level}")

    click.echo("\n🤖 AI:")
    click.echo(f"  Provider: {settings.ai_provider}")
    click.echo(f"  Model: {settings.ai_model}")
    click.echo(f"  Base URL: {settings.ai_base_url}")
    click.echo(f"  API Key: {'✅ Configured' if settings.ai_api_key else '❌ Missing'}")

    click.echo("\n📰 Content:")
    click.echo(f"  Tone: {settings.newsletter_tone}")
    click.echo(f"  Personalization: {settings.enable_personalization}")
    click.echo(f"  Days Back: {settings.days_back_to_scan}")
    click.echo(f"  Max Items: {settings.max_items_per_newsletter}")
    click.echo(f"  Libraries: {', '.join(settings.library_list) or 'all'}")
    click.echo(f"  Content Types: {', '.join(settings.content_type_list)}")

    click.echo("\n🎬 Jellyfin:")
    click.echo(f"  URL: {settings.jellyfin_url or 'not set'}")
    click.echo(f"  API Key: {'✅ Configured' if settings.jellyfin_api_key else '❌ Missing'}")

    click.echo("\n📧 Email:")
    click.echo(f"  SMTP Server: {settings.smtp_server or 'not set'}:{settings.smtp_port}")
    click.echo(f"  Password: {'✅ Configured' if settings.smtp_password else '❌ Missing'}")
    click.echo(f"  Sender: {settings.sender_name} <{settings.sender_email or 'not set'}>")
    click.echo(f"  Recipients: {len(settings.recipient_list)} configured")


@cli.command()
@click.pass_context
def validate(ctx: click.Context) -> None:
    """Validate the configuration and list every problem found."""
    from media_newsletter.models.validation import validate_settings

    result = validate_settings(_load_settings(ctx))
    if result.is_valid:
        click.echo("✅ Configuration is valid")
        return

    click.echo(f"❌ Configuration has {len(result.errors)} problem(s):")
    for error in result.errors:
        click.echo(f"  - {error}")
    sys.exit(1)


if __name__ == "__main__":
    cli()
