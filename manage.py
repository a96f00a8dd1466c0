"""Management script for database setup and admin tasks"""

import click
from dotenv import load_dotenv
from flask.cli import FlaskGroup

load_dotenv()

from mansatask import create_app  # noqa: E402
from mansatask.extensions import db  # noqa: E402
from mansatask.models import PaymentLink, Product, User, UserRole  # noqa: E402
from mansatask.services.payment_link_service import generate_slug  # noqa: E402

cli = FlaskGroup(create_app=lambda: create_app())

SEED_EMAIL = "merchant@mansatask.dev"


@cli.command("init-db")
def init_db():
    """Create all database tables"""
    db.create_all()
    click.echo("Database initialized successfully")


@cli.command("drop-db")
@click.confirmation_option(prompt="Are you sure you want to drop all tables?")
def drop_db():
    """Drop all database tables"""
    db.drop_all()
    click.echo("Database dropped successfully")


@cli.command("seed-db")
def seed_db():
    """Seed the database with a demo merchant, a product and a payment link"""
    if User.query.filter_by(email=SEED_EMAIL).first():
        click.echo("Sample merchant already exists. Skipping.")
        return

    merchant = User(name="Demo Merchant", email=SEED_EMAIL, phone="+237670000000")
    merchant.set_password("merchant123")
    db.session.add(merchant)
    db.session.flush()

    product = Product(
        user_id=merchant.id,
        name="Consultation",
        description="One hour consultation",
        price=15000,
        quantity=10,
    )
    db.session.add(product)
    db.session.flush()

    link = PaymentLink(
        user_id=merchant.id,
        product_id=product.id,
        title="Consultation",
        amount=15000,
        slug=generate_slug(),
        max_uses=10,
    )
    db.session.add(link)
    db.session.commit()

    click.echo(f"Seeded merchant {SEED_EMAIL} with payment link {link.slug}")


@cli.command("create-admin")
@click.option("--email", prompt=True)
@click.option("--name", prompt=True)
@click.password_option()
def create_admin(email, name, password):
    """Create an admin user"""
    email = email.strip().lower()
    if User.query.filter_by(email=email).first():
        raise click.ClickException(f"User with email '{email}' already exists")
    if len(password) < 8:
        raise click.ClickException("Password must be at least 8 characters")

    user = User(name=name.strip(), email=email, role=UserRole.ADMIN)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()

    click.echo(f"Admin user created successfully: {email}")


if __name__ == "__main__":
    cli()
