# groupfun

The game rules and data stores behind a set of group-chat features. The package
does not connect to a chat service and sends no messages. Its functions take
plain values, such as group ids, user ids, a name lookup and a `random.Random`,
and return the reply text or data for the bot to send. Where the rules turn a
request down, they raise an exception.

## Installation

```
pip install .
```

To install the test tools as well:

```
pip install .[test]
```

## Modules

| Module | Purpose |
| --- | --- |
| `groupfun.marriage` | `MarriageRegistry` is an SQLite register that keeps one table of pairings for each group, together with the day each group was last reset. `lookup` returns a `Marriage` and a `MaritalStatus` (`GROOM`, `BRIDE`, `SINGLE`). `roster` lists the couples. `slice_name` shortens a name to a width limit, given a function that measures the width. |
| `groupfun.matchmaking` | The pairing rules. `draw_wife`, `propose`, `steal` and `divorce` return reply strings that carry CQ codes for mentions and avatars. `divorce` returns `None` when the user is not married. `check_proposal`, `check_mistress` and `check_divorce` raise `Refusal` with the reason. `ensure_today` resets a group whose register is from an earlier day. `Cooldown` allows each key one action per period, 12 hours by default. |
| `groupfun.reborn` | Weighted reincarnation draws. `WeightedChooser` picks items by integer weight. `load_areas` reads a JSON list of `{"name", "weight"}`. `area_chooser` builds a chooser from those entries, and `reborn` returns the reply. |
| `groupfun.wtf` | A table of "prediction" tests on a web API. `new_wtf(index)` returns a test or `None`, `list_text()` returns the numbered list, and `Wtf.predict(*names)` runs the test. It raises `RuntimeError` when the API reports a failure. |
| `groupfun.runcode` | Runs code on an online compiler service. `lookup_language` and `template_for` raise `ValueError` for an unsupported language. `run_code` raises `RunCodeError`. `clear_newline_suffix` and `cut_too_long` tidy the output. The service token comes from the `RUNCODE_TOKEN` environment variable. |
| `groupfun.sleep` | `SleepDatabase.sleep` and `SleepDatabase.get_up` record times and return the user's position for the day and the elapsed `timedelta`. `good_morning_text` and `good_night_text` format the replies. `is_morning` and `is_evening` report whether an hour falls in the window when those greetings count. |
| `groupfun.score` | `ScoreDatabase` stores scores and sign-in counts. `sign_in` awards the daily point, capped at `SCOREMAX`, and returns a `SignInResult`. The module also has `get_level`, `next_level_score`, `get_hour_word` and `top_scores`. |
| `groupfun.wordcount` | Counts hot words in text that is already segmented. The functions are `load_stopwords`, `is_countable`, `count_words`, `rank_by_word_count` and `clamp_message_count`. |
| `groupfun.wordle` | `WordleGame` plays one round. `guess` returns `True` on a win and raises `LengthNotEnough`, `UnknownWord` or `TimesRunOut`. `render` returns the board as PNG bytes. `score_guess` returns a `Mark` for each letter, and `class_size` maps a difficulty name to a word length. |
| `groupfun.tarot` | `TarotDeck.from_json` loads the cards and spreads. The deck has `draw`, `interpret` and `spread`. `parse_draw_count` validates the number of cards a request asks for. |
| `groupfun.vtbdb` | `VtbDatabase` stores VTuber voice clips in three levels of category. It builds numbered menus, looks clips up by index and picks a random clip. `fetch_vtb_list` and `store_vtb` download the data, and `store_vtb_list` and `store_vtb_page` store data already parsed. `escape_record_url` encodes a clip URL. |
| `groupfun.ymgal` | `YmgalDatabase` stores galgame picture sets and has `upsert`, `get_by_id`, `random` and `search`. The page parsers are `parse_page_count`, `parse_picset_ids`, `parse_cg_picset` and `parse_emoticon_picset`. `update_pictures` scrapes the sets that are new, through a fetch function you can replace. |

## Examples

```python
import random
from groupfun.marriage import MarriageRegistry
from groupfun.matchmaking import check_proposal, draw_wife, propose, Refusal

nicknames = {10001: "Alice", 10002: "Bob", 10003: "Carol"}
members = [(10001, 1650000000), (10002, 1650000100), (10003, 1650000200)]
rng = random.Random()

with MarriageRegistry("marriage.db") as registry:
    print(draw_wife(registry, 42, 10002, members, lambda uid: nicknames[uid], rng))
    try:
        check_proposal(registry, 42, 10001, 10003)
        print(propose(registry, 42, 10001, 10003, "娶", lambda uid: nicknames[uid], rng))
    except Refusal as refusal:
        print(refusal)
```

```python
from groupfun.wordle import WordleGame, UnknownWord

game = WordleGame("apple", ["apple", "angle", "ample"])
try:
    won = game.guess("angle")
except UnknownWord:
    won = False
png_bytes = game.render()
```

## What the package does not do

- It has no bot, no command-line program and no chat connection. Matching chat
  commands and sending replies is left to the caller.
- It draws no images except the wordle board. There are no sign-in cards, no
  marriage roster picture and no bar charts of scores or hot words.
- `groupfun.wordcount` does not split text into words or fetch chat history.
  The caller passes in slices that are already segmented.
- Tarot card data, reincarnation area weights and stop-word lists are not
  included. They are loaded from JSON or text that the caller supplies.

## Running the tests

```
pytest
```