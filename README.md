# fundamentum

A storage layer for a community chat bot. All of its data lives in one SQLite database. It covers:

- member activity, queued moderation actions, warnings, appeals and moderator notes
- leveling, economy and shop items, trivia scores, reputation, daily streaks and achievements
- starboard entries, reminders, calendar events with RSVPs, role rentals and role progression rules
- reaction-role rules, custom commands, confessions, birthdays, AFK status and backfill progress
- webhook integrations, a hash-chained audit trail, season reset history and data retention
- dashboard users and sessions

## Installation

```
pip install .
```

To run the tests, install the test extra and then run pytest:

```
pip install ".[test]"
pytest
```

## Getting started

```python
from fundamentum.store import open_database, migrate
from fundamentum.repositories import new_repositories, ensure_dashboard_users

conn = open_database("bot.db")
migrate(conn)

repos = new_repositories(conn)

admin_password = "password"
ensure_dashboard_users(repos, admin_password, {"moderator": "secret"})
```

`open_database` opens one autocommit connection. It turns on WAL journaling, sets a 5 second busy timeout and sets `synchronous=NORMAL`. `migrate` creates every table and index if they are missing, so you can run it again safely.

`ensure_dashboard_users` does two things:

- It creates or refreshes the `admin` account.
- It creates one account for each role in the mapping. Each account is named after its role and gets the bcrypt hash of that role's secret.

It skips blank roles, blank secrets and the `admin` role itself.

## Repositories

`new_repositories` returns a `Repositories` dataclass. It has one repository per area, and they all share the same connection. The attributes are:

- `activity`, `actions`, `backfill`, `reaction_roles`, `warnings`, `appeals`, `custom_commands`
- `starboard`, `leveling`, `afk`, `reminders`, `member_notes`, `retention`, `webhooks`
- `audit_trail`, `reputation`, `economy`, `achievements`, `calendar`, `role_rentals`
- `confessions`, `trivia`, `birthdays`, `role_progression`, `streaks`, `season_resets`, `dashboard_auth`

Each repository class can also be built on its own from a connection, for example `fundamentum.economy.EconomyRepo(conn)`.

```python
from datetime import datetime, timezone

from fundamentum.leveling import xp_for_level, level_for_xp

now = datetime.now(timezone.utc)

repos.activity.upsert_activity("guild-1", "user-1", "chan-1", now, "alice", "Alice", "Alice")
members = repos.activity.list_members("guild-1", 50, 0, "ali")

row, leveled_up = repos.leveling.add_xp_if_due(
    "guild-1", "user-1", "alice", 15, 60, "quadratic", 100
)
assert xp_for_level(2, "quadratic", 100) == 400
assert level_for_xp(400, "quadratic", 100) == 2

repos.economy.add_balance("guild-1", "user-1", 25)
balance = repos.economy.get_balance("guild-1", "user-1")

streak, new_day = repos.streaks.upsert_daily_activity("guild-1", "user-1", "2024-05-01")

repos.audit_trail.append("guild-1", "ban", "user banned", {"user_id": "user-2"})
```

### Conventions

- **Lookups that find no row** return `None`. This applies to methods such as `get_member`, `get`, `find_by_trigger` and `get_by_source`. The exceptions are `DashboardAuthRepo.get_user` and `DashboardAuthRepo.get_session`, which raise `KeyError`.
- **Validation errors:** `DashboardAuthRepo.upsert_user` and `create_session` raise `ValueError` when a required field is empty. `RemindersRepo.create` raises `ValueError` when the reminder has no run time.
- **Database errors** pass through as `sqlite3` exceptions.
- **Timestamps** are stored as RFC 3339 UTC strings with second precision. `fundamentum.store.format_time` and `fundamentum.store.parse_time` convert between those strings and `datetime` values.
- **List limits:** many list methods treat a non-positive limit as their default.

## Event log

`fundamentum.eventlog.Logger` writes messages through the standard `logging` module, on the `fundamentum` logger. It also keeps the last 1000 entries in memory:

```python
from fundamentum.eventlog import Logger

log = Logger("debug")
log.info("joined %s", "guild-1")
print(log.recent_events(10))
```

Debug messages are recorded only when the logger is created with level `"debug"`. `recent_events` returns entries oldest first.

## What this package does not do

This package is storage only. It has:

- no chat-platform connection
- no background workers
- no web dashboard server
- no command to start a bot

`migrate` creates several tables that no repository here reads or writes:

- guild settings
- tickets and ticket messages
- scheduled messages
- giveaways and their entries
- polls and suggestions
- the join screening queue
- raid lockdowns

Those tables stay empty unless other code fills them.