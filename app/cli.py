# app/cli.py
"""
Operational commands, registered on the Flask CLI:

    flask create-admin --email admin@example.com --password Secret123 --name "Site Admin" --phone 15550000000
    flask outbox-dispatch --limit 100
    flask purge-notifications
    flask purge-revoked-tokens
"""

import click
from flask import Flask, current_app

from app.core.security import purge_revoked_tokens
from app.models.user import UserRole


def register_cli(app: Flask):

    @app.cli.command('create-admin')
    @click.option('--email', required=True, help='Admin login email')
    @click.option('--password', required=True, help='Initial password')
    @click.option('--name', default='Admin', show_default=True)
    @click.option('--phone', default='10000000000', show_default=True)
    def create_admin(email, password, name, phone):
        """Creates an admin account. Does nothing if the email is already registered."""
        users = current_app.services['user_repository']
        existing = users.get_by_email(email)
        if existing is not None:
            click.echo(f"User {existing.email} already exists (role: {existing.role.value})")
            return

        user, _token = current_app.services['auth'].register(
            {'name': name, 'email': email, 'password': password, 'phone': phone},
            role=UserRole.ADMIN
        )
        users.update(user.user_id, {'is_email_verified': True})
        click.echo(f"Admin user created: {user.email} ({user.user_id})")

    @app.cli.command('outbox-dispatch')
    @click.option('--limit', default=100, show_default=True, help='Maximum number of events to retry')
    def outbox_dispatch(limit):
        """Retries pending notification and email deliveries."""
        summary = current_app.services['outbox'].dispatch_pending(limit)
        click.echo(", ".join(f"{status}: {count}" for status, count in summary.items()))

    @app.cli.command('purge-notifications')
    def purge_notifications():
        """Deletes notifications past their expiry."""
        removed = current_app.services['notifications'].purge_expired()
        click.echo(f"Removed {removed} expired notifications")

    @app.cli.command('purge-revoked-tokens')
    def purge_revoked_tokens_command():
        """Deletes logout blocklist entries for tokens that have expired."""
        removed = purge_revoked_tokens(current_app.services['db'])
        click.echo(f"Removed {removed} expired revoked tokens")
