"""Service layer for teams and players."""
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from models.roster import Player, Team
from schemas.roster import PlayerCreate, PlayerImportRow, PlayerUpdate, TeamCreate
from services.exceptions import ConflictError, NotFoundError


async def list_teams(db: AsyncSession) -> list[Team]:
    """Get all teams ordered by name."""
    result = await db.execute(select(Team).order_by(Team.name))
    return list(result.scalars().all())


async def create_team(db: AsyncSession, data: TeamCreate) -> Team:
    """
    Create a team.

    Raises:
        ConflictError: If a team with the same name exists.
    """
    name = data.name.strip()
    existing = await db.execute(select(Team.id).where(Team.name == name))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError(f"Team '{name}' already exists")

    team = Team(name=name)
    try:
        async with db.begin_nested():
            db.add(team)
            await db.flush()
    except IntegrityError as e:
        # Concurrent insert of the same name
        raise ConflictError(f"Team '{name}' already exists") from e
    return team


async def delete_team(db: AsyncSession, team_id: UUID) -> None:
    """
    Delete a team. Players on the team become unassigned; its photo tags go away.

    Raises:
        NotFoundError: If the team does not exist.
    """
    team = await db.get(Team, team_id, options=[selectinload(Team.players)])
    if team is None:
        raise NotFoundError("Team", team_id)
    for player in team.players:
        player.team_id = None
    await db.delete(team)
    await db.flush()


async def _get_player(db: AsyncSession, player_id: UUID) -> Player:
    result = await db.execute(
        select(Player).options(selectinload(Player.team)).where(Player.id == player_id),
    )
    player = result.scalar_one_or_none()
    if player is None:
        raise NotFoundError("Player", player_id)
    return player


async def list_players(db: AsyncSession, team_id: UUID | None = None) -> list[Player]:
    """Get players (optionally for one team), ordered by name."""
    query = select(Player).options(selectinload(Player.team)).order_by(Player.name)
    if team_id is not None:
        query = query.where(Player.team_id == team_id)
    result = await db.execute(query)
    return list(result.scalars().all())


async def create_player(db: AsyncSession, data: PlayerCreate) -> Player:
    """
    Create a player.

    Raises:
        NotFoundError: If team_id is given and does not exist.
    """
    if data.team_id is not None and await db.get(Team, data.team_id) is None:
        raise NotFoundError("Team", data.team_id)

    player = Player(
        name=data.name.strip(),
        jersey_number=data.jersey_number,
        position=data.position or None,
        team_id=data.team_id,
    )
    db.add(player)
    await db.flush()
    return await _get_player(db, player.id)


async def update_player(db: AsyncSession, player_id: UUID, data: PlayerUpdate) -> Player:
    """
    Update the provided fields of a player.

    Raises:
        NotFoundError: If the player, or a newly referenced team, does not exist.
    """
    player = await _get_player(db, player_id)
    changes = data.model_dump(exclude_unset=True)

    if changes.get("team_id") is not None and await db.get(Team, changes["team_id"]) is None:
        raise NotFoundError("Team", changes["team_id"])
    if "name" in changes and changes["name"] is not None:
        changes["name"] = changes["name"].strip()

    for field, value in changes.items():
        setattr(player, field, value)
    await db.flush()
    db.expire(player)
    return await _get_player(db, player_id)


async def delete_player(db: AsyncSession, player_id: UUID) -> None:
    """
    Delete a player and their photo tags.

    Raises:
        NotFoundError: If the player does not exist.
    """
    player = await db.get(Player, player_id)
    if player is None:
        raise NotFoundError("Player", player_id)
    await db.delete(player)
    await db.flush()


async def import_players(
    db: AsyncSession, rows: list[PlayerImportRow],
) -> tuple[list[Player], list[str]]:
    """
    Create players in bulk, resolving team names case-insensitively.

    A row whose team name matches no team still creates the player, without
    a team.

    Returns:
        Tuple of (created players, unmatched team names in first-seen order).
    """
    wanted = {row.team.strip().lower() for row in rows if row.team and row.team.strip()}
    teams_by_name: dict[str, Team] = {}
    if wanted:
        result = await db.execute(select(Team).where(func.lower(Team.name).in_(wanted)))
        teams_by_name = {team.name.lower(): team for team in result.scalars().all()}

    players: list[Player] = []
    unmatched: dict[str, str] = {}
    for row in rows:
        team_name = (row.team or "").strip()
        team = teams_by_name.get(team_name.lower()) if team_name else None
        if team_name and team is None:
            unmatched.setdefault(team_name.lower(), team_name)
        player = Player(
            name=row.name.strip(),
            jersey_number=row.jersey_number,
            position=row.position or None,
            team_id=team.id if team is not None else None,
        )
        db.add(player)
        players.append(player)
    await db.flush()
    return players, list(unmatched.values())
