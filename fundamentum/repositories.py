"""All repositories over one database connection, and dashboard bootstrapping."""

from __future__ import annotations

import sqlite3
from collections.abc import Mapping
from dataclasses import dataclass

import bcrypt

from .achievements import AchievementsRepo
from .actions import ActionsRepo
from .activity import ActivityRepo
from .afk import AFKRepo
from .appeals import AppealsRepo
from .audit_trail import AuditTrailRepo
from .backfill import BackfillRepo
from .birthdays import BirthdaysRepo
from .calendar_events import CalendarRepo
from .confessions import ConfessionsRepo
from .custom_commands import CustomCommandsRepo
from .dashboard_auth import DashboardAuthRepo, DashboardUserRow
from .economy import EconomyRepo
from .leveling import LevelingRepo
from .member_notes import MemberNotesRepo
from .member_warnings import WarningsRepo
from .reaction_roles import ReactionRolesRepo
from .reminders import RemindersRepo
from .reputation import ReputationRepo
from .retention import RetentionRepo
from .role_progression import RoleProgressionRepo
from .role_rentals import RoleRentalsRepo
from .season_resets import SeasonResetsRepo
from .starboard import StarboardRepo
from .streaks import StreaksRepo
from .trivia import TriviaRepo
from .webhooks import WebhooksRepo

_BCRYPT_ROUNDS = 10
_ADMIN = "admin"


@dataclass
class Repositories:
    """Every repository, sharing one connection."""

    activity: ActivityRepo
    actions: ActionsRepo
    backfill: BackfillRepo
    reaction_roles: ReactionRolesRepo
    warnings: WarningsRepo
    appeals: AppealsRepo
    custom_commands: CustomCommandsRepo
    starboard: StarboardRepo
    leveling: LevelingRepo
    afk: AFKRepo
    reminders: RemindersRepo
    member_notes: MemberNotesRepo
    retention: RetentionRepo
    webhooks: WebhooksRepo
    audit_trail: AuditTrailRepo
    reputation: ReputationRepo
    economy: EconomyRepo
    achievements: AchievementsRepo
    calendar: CalendarRepo
    role_rentals: RoleRentalsRepo
    confessions: ConfessionsRepo
    trivia: TriviaRepo
    birthdays: BirthdaysRepo
    role_progression: RoleProgressionRepo
    streaks: StreaksRepo
    season_resets: SeasonResetsRepo
    dashboard_auth: DashboardAuthRepo


def new_repositories(conn: sqlite3.Connection) -> Repositories:
    """Build every repository over ``conn``."""
    return Repositories(
        activity=ActivityRepo(conn),
        actions=ActionsRepo(conn),
        backfill=BackfillRepo(conn),
        reaction_roles=ReactionRolesRepo(conn),
        warnings=WarningsRepo(conn),
        appeals=AppealsRepo(conn),
        custom_commands=CustomCommandsRepo(conn),
        starboard=StarboardRepo(conn),
        leveling=LevelingRepo(conn),
        afk=AFKRepo(conn),
        reminders=RemindersRepo(conn),
        member_notes=MemberNotesRepo(conn),
        retention=RetentionRepo(conn),
        webhooks=WebhooksRepo(conn),
        audit_trail=AuditTrailRepo(conn),
        reputation=ReputationRepo(conn),
        economy=EconomyRepo(conn),
        achievements=AchievementsRepo(conn),
        calendar=CalendarRepo(conn),
        role_rentals=RoleRentalsRepo(conn),
        confessions=ConfessionsRepo(conn),
        trivia=TriviaRepo(conn),
        birthdays=BirthdaysRepo(conn),
        role_progression=RoleProgressionRepo(conn),
        streaks=StreaksRepo(conn),
        season_resets=SeasonResetsRepo(conn),
        dashboard_auth=DashboardAuthRepo(conn),
    )


def _hash(secret: str) -> str:
    return bcrypt.hashpw(secret.encode(), bcrypt.gensalt(rounds=_BCRYPT_ROUNDS)).decode()


def ensure_dashboard_users(
    repos: Repositories, admin_password: str, role_secrets: Mapping[str, str] | None
) -> None:
    """Create or refresh the admin account and one account per role secret.

    Each role account is named after its role. Blank roles, blank secrets and
    the admin role itself in ``role_secrets`` are skipped.
    """
    auth = repos.dashboard_auth
    auth.upsert_user(
        DashboardUserRow(
            username=_ADMIN, password_hash=_hash(admin_password), role=_ADMIN, enabled=True
        )
    )
    for raw_role, raw_secret in (role_secrets or {}).items():
        role = raw_role.strip().lower()
        secret = raw_secret.strip()
        if not role or role == _ADMIN or not secret:
            continue
        auth.upsert_user(
            DashboardUserRow(username=role, password_hash=_hash(secret), role=role, enabled=True)
        )