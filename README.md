# growbot

The core of a group-chat game: each member grows (or shrinks) a virtual
length, competes in a chat-wide top, fights others for a share of it,
takes loans, activates promo codes and wins the "dick of the day" bonus.
This package holds the game's storage (SQLite, through the standard
library's `sqlite3`), its scoring and a few helpers. It has no
dependencies outside the standard library.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

### Storage

- `growbot.database`: `open_database(path=":memory:")` opens an SQLite
  database, turns on foreign keys and creates the schema where it is
  missing. `FeatureToggles` (`chats_merging`, `top_unlimited`,
  `pvp_callback_locks`, all `True` by default) switches optional
  behaviour. `ensure_one_row_updated(rowcount)` raises `RowCountError`
  unless exactly one row changed.
- `growbot.chat_ids`: a chat is known by its numeric id
  (`ChatIdById`), by an inline `chat_instance` string
  (`ChatIdByInstance`), or by both (`ChatIdFull`, wrapped in `BothIds`
  with a `ChatIdSource`). `SpecificId` holds exactly one identifier.
  `to_partiality(value)` accepts an `int`, a `str`, an identifier or a
  partiality.
- `growbot.chats`: `Chats` finds chats (`get_chat`, `get_internal_id`,
  which raises `ChatNotFoundError`) and `upsert_chat`s them. When both
  identifiers become known for two separate records, it merges them and
  sums the members' lengths. `merge_chat_objects` plans such a merge and
  raises `MergeChatsError` when it cannot be done.
- `growbot.dicks`: `Dicks` provides `create_or_grow`, `fetch_length`,
  `fetch_dick`, `get_top` (a page of the top with positions),
  `set_dod_winner`, `check_dick`, `move_length` between two members and
  `grow_no_attempts_check`. Positions in `GrowthResult.pos_in_top` are
  `None` when `top_unlimited` is off.
- `growbot.users`: `Users` creates and renames users and picks chat
  members. Random picks consider only members who grew within the last
  week: any of them, only the poorer share (`get_random_active_poor_member`
  with a ratio between 0 and 1), or weighted towards shorter lengths.
- `growbot.imports`: `Import` records lengths brought from elsewhere
  (`ExternalUser`) and adds them to the members' entries.
- `growbot.loans`: `Loans(conn, payout_ratio)` lends length (`borrow`
  opens or extends the active loan) and takes repayments (`pay`). A loan
  whose debt reaches zero is marked repaid.
- `growbot.promo`: `Promo` creates codes (`PromoCodeParams`) and
  activates them, case-insensitively. Every entry of the user grows by
  the bonus. A failed activation raises an `ActivationError`:
  `NoActivationsLeft`, `NoDicks` or `AlreadyActivated`.
- `growbot.stats`: `PersonalStatsRepo.get` returns the number of chats,
  the longest and the total length of a user.
- `growbot.pvpstats`: `BattleStatsRepo` records battle results
  (`send_battle_result`) and reads a user's record (`get_stats`).
  `UserStats` and `LoserStats` format the win rate as `"33.33%"`.
- `growbot.announcements`: `Announcements` returns the announcement
  configured for a language (`en` or `ru`, anything else falls back to
  `en`) until it has been shown `max_shows` times in the chat. A changed
  hash starts the count again, and `max_shows=0` turns announcements off.

### Scoring

- `growbot.incrementor`: `Incrementor` generates growth and
  dick-of-the-day increments. `get_base_increment(low, high, sign_ratio)`
  picks a non-zero value that is positive with the given probability.
  Newcomers within the grace period only grow. `Incrementor.from_env`
  reads `GROWTH_MIN`, `GROWTH_MAX`, `GROW_SHRINK_RATIO`,
  `NEWCOMERS_GRACE_DAYS` and `GROWTH_DOD_BONUS_MAX`. Subclasses of
  `Perk` add to the base change. A perk is left out when
  `DISABLE_<NAME>=true` is set.

### Helpers

- `growbot.callbacks`: `CallbackData` is a base for button payloads of
  the form `<prefix>:<payload>`. `parse_part` and `parse_optional_part`
  help to parse them, and errors are raised as `InvalidCallbackData`.
  `get_params_for_message_edit` tells a chat message from an inline one.
- `growbot.locks`: `LockServiceFacade.from_config(callback_locks)`
  returns guards that keep the same callback from being handled twice at
  once. Guards are context managers.
- `growbot.page`: `Page`, a non-negative page number with arithmetic
  and comparisons against integers, and `InvalidPage`.
- `growbot.tghack`: `resolve_inline_message_id` decodes an inline
  message id into `InlineMessageIdInfo` (data centre, chat, message,
  access hash). It raises `InvalidIDFormat` on bad input, and
  `fix_chat_id` restores supergroup chat ids.
- `growbot.metrics`: `init()` returns a `Registry` holding all the
  command usage counters (`CMD_GROW_COUNTER.chat.inc()` and the like).
  `Registry.render()` returns them in the Prometheus text format.
- `growbot.naming`: `get_full_name(first_name, last_name)` and
  `time_till_next_day(now)`, for example `"<b>1</b>h <b>49</b>m."`.

## Example

```python
from growbot.database import open_database, FeatureToggles
from growbot.chat_ids import ChatIdById, to_partiality
from growbot.users import Users
from growbot.dicks import Dicks

db = open_database(":memory:")
Users(db).create_or_update(12345, "test")
dicks = Dicks(db, FeatureToggles())
chat = ChatIdById(67890)

result = dicks.create_or_grow(12345, to_partiality(chat), 5)
print(result.new_length, result.pos_in_top)   # 5 1
print([d.owner_name for d in dicks.get_top(chat, 0, 10)])   # ['test']
```

## What this package does not do

- It does not connect to any chat service. It has no bot, no command
  handlers, no inline-query or button handling and no dialogues. Those
  are to be built on top of these modules.
- It starts no server. `growbot.metrics` only counts and renders text;
  serving it over HTTP is left to the application.
- It has no localisation or help texts. `time_till_next_day` answers in
  English only.
- It installs no command-line entry point.