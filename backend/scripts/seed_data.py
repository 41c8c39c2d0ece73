"""Seed script to populate a local dev database with a roster, folders and dev accounts.

Usage:
    PYTHONPATH=backend/src python backend/scripts/seed_data.py populate
    PYTHONPATH=backend/src python backend/scripts/seed_data.py populate --force
    PYTHONPATH=backend/src python backend/scripts/seed_data.py clear

Photos are not seeded: they need objects in storage, so upload a few through
the API once the roster exists.
"""

import argparse
import asyncio
from urllib.parse import urlsplit

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from core.config import get_settings
from models import Folder, Player, Team, User, UserRole
from schemas.folder import FolderCreate
from schemas.roster import PlayerCreate, TeamCreate
from services import folder_service, roster_service
from services.user_service import hash_password

LOCAL_HOSTS = {'localhost', '127.0.0.1', 'db', 'postgres'}

DEV_PASSWORD = 'password123'

DEV_USERS = [
    {'email': 'admin@example.com', 'name': 'Dev Admin', 'role': UserRole.ADMIN},
    {'email': 'player@example.com', 'name': 'Dev Player', 'role': UserRole.PLAYER},
]

TEAMS = {
    'Eagles': [
        ('Ann Archer', 9, 'Forward'),
        ('Ben Brooks', 4, 'Defender'),
        ('Cara Cole', 1, 'Goalkeeper'),
    ],
    'Hawks': [
        ('Dan Diaz', 10, 'Midfielder'),
        ('Eve Ellis', 7, 'Forward'),
    ],
}

# parent name -> child names; None is the root level
FOLDERS = {
    None: ['2024 Season', 'Practice', 'Team Events'],
    '2024 Season': ['Home Games', 'Away Games', 'Tournament'],
}


async def create_dev_users(session: AsyncSession) -> None:
    for data in DEV_USERS:
        existing = (await session.execute(
            select(User).where(User.email == data['email'])
        )).scalar_one_or_none()
        if existing is None:
            session.add(User(
                email=data['email'],
                name=data['name'],
                password_hash=hash_password(DEV_PASSWORD),
                role=data['role'].value,
            ))
    await session.flush()


async def create_roster(session: AsyncSession) -> None:
    for team_name, players in TEAMS.items():
        team = await roster_service.create_team(session, TeamCreate(name=team_name))
        for name, number, position in players:
            await roster_service.create_player(session, PlayerCreate(
                name=name, jersey_number=number, position=position, team_id=team.id,
            ))


async def create_folders(session: AsyncSession) -> None:
    by_name: dict[str, Folder] = {}
    for parent_name, names in FOLDERS.items():
        parent_id = by_name[parent_name].id if parent_name else None
        for name in names:
            folder = await folder_service.create_folder(
                session, FolderCreate(name=name, parent_id=parent_id),
            )
            by_name[name] = folder


async def clear_data(session: AsyncSession) -> None:
    """Remove seeded roster and folders. Photos, collections and the audit log are kept."""
    await session.execute(delete(Player))
    await session.execute(delete(Team))
    # Children first so the self-referencing foreign key never blocks a delete
    await session.execute(delete(Folder).where(Folder.parent_id.is_not(None)))
    await session.execute(delete(Folder))
    print('Cleared roster and folders.')


async def populate(force: bool = False) -> None:
    """Populate the database with seed data."""
    settings = get_settings()
    engine = create_async_engine(settings.database_url, echo=False)
    auth_engine = create_async_engine(settings.auth_database_url, echo=False)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    auth_session_factory = async_sessionmaker(
        auth_engine, class_=AsyncSession, expire_on_commit=False,
    )

    try:
        async with auth_session_factory() as auth_session:
            await create_dev_users(auth_session)
            await auth_session.commit()

        async with session_factory() as session:
            try:
                team_count = (await session.execute(
                    select(func.count()).select_from(Team)
                )).scalar()

                if team_count and team_count > 0:
                    if force:
                        print('Existing data found, clearing first (--force)...')
                        await clear_data(session)
                        await session.flush()
                    else:
                        print(
                            f'Data already exists ({team_count} teams). '
                            f'Use --force to clear and re-seed.'
                        )
                        return

                print('Populating seed data...')
                await create_roster(session)
                await create_folders(session)
                await session.commit()
                print(f'Seed data created successfully. Dev password: {DEV_PASSWORD}')
            except Exception:
                await session.rollback()
                raise
    finally:
        await engine.dispose()
        await auth_engine.dispose()


async def clear() -> None:
    """Clear seeded roster and folders."""
    settings = get_settings()
    engine = create_async_engine(settings.database_url, echo=False)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        try:
            await clear_data(session)
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await engine.dispose()


def main() -> None:
    """CLI entry point."""
    settings = get_settings()
    hosts = {urlsplit(url).hostname for url in (settings.database_url, settings.auth_database_url)}
    if not hosts <= LOCAL_HOSTS:
        print(
            "ERROR: Seed script only runs against local databases.\n"
            f"Refusing to write to: {', '.join(sorted(h or '?' for h in hosts))}"
        )
        raise SystemExit(1)

    parser = argparse.ArgumentParser(description='Seed the dev database with test data.')
    subparsers = parser.add_subparsers(dest='command', required=True)

    populate_parser = subparsers.add_parser('populate', help='Populate database with test data')
    populate_parser.add_argument(
        '--force', action='store_true',
        help='Clear existing data before populating',
    )

    subparsers.add_parser('clear', help='Remove seeded roster and folders')

    args = parser.parse_args()

    if args.command == 'populate':
        asyncio.run(populate(force=args.force))
    elif args.command == 'clear':
        asyncio.run(clear())


if __name__ == '__main__':
    main()
