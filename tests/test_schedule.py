from datetime import date, datetime

from taicai.games import GAMES, GameDefinition
from taicai.schedule import JACKPOT_PENDING, UNSCHEDULED, game_summary, history_row, next_draw_date

MONDAY = date(2024, 1, 1)


def test_next_draw_later_this_week():
    nxt = next_draw_date([2, 5], MONDAY)
    assert nxt.date == date(2024, 1, 2)
    assert nxt.weekday_label == "二"
    assert nxt.days_away == 1
    assert nxt.display() == "2024/01/02 (二)"


def test_draw_day_today_counts():
    nxt = next_draw_date([2, 5], date(2024, 1, 2))
    assert nxt.date == date(2024, 1, 2)
    assert nxt.days_away == 0


def test_wraps_to_next_week():
    nxt = next_draw_date([2, 5], date(2024, 1, 6))  # Saturday
    assert nxt.date == date(2024, 1, 9)
    assert nxt.weekday_label == "二"


def test_sunday_start_of_week():
    nxt = next_draw_date([1, 2, 3, 4, 5, 6], date(2024, 1, 7))
    assert nxt.date == date(2024, 1, 8)
    assert nxt.weekday_label == "一"
    assert next_draw_date([0], date(2024, 1, 7)).days_away == 0


def test_accepts_datetime():
    assert next_draw_date([1], datetime(2024, 1, 1, 22, 0)).date == MONDAY


def test_empty_schedule_is_unscheduled():
    assert next_draw_date([], MONDAY) is None


def test_history_row_splits_special_number(record):
    rec = record("大樂透", "1", MONDAY, [40, 3, 22, 9, 15, 1, 33])
    row = history_row(GAMES["大樂透"], rec)
    assert row["numbers"] == [1, 3, 9, 15, 22, 40]
    assert row["special"] == 33

    appear = history_row(GAMES["大樂透"], rec, order="appear")
    assert appear["numbers"] == [40, 3, 22, 9, 15, 1]

    plain = history_row(GAMES["今彩539"], record("今彩539", "1", MONDAY, [5, 1, 2, 3, 4]))
    assert plain["special"] is None


def test_game_summary(record):
    timeline = [record("威力彩", str(10 - i), MONDAY, [1, 2, 3, 4, 5, 6, 7]) for i in range(3)]
    summary = game_summary(GAMES["威力彩"], timeline, 1200000, today=MONDAY)
    assert summary["total_count"] == 3
    assert summary["latest_period"] == "10"
    assert summary["jackpot"] == 1200000
    assert summary["next_draw"]["next_date"] == "2024-01-01"
    assert summary["recent"][0]["special"] == 7
    assert summary["hot"]["all"][0] == {"n": 1, "c": 3}


def test_game_summary_without_data_or_schedule():
    game = GameDefinition(name="x", type="lotto", range=10, count=3)
    summary = game_summary(game, [], None, today=MONDAY)
    assert summary["jackpot"] == JACKPOT_PENDING
    assert summary["next_draw"] == UNSCHEDULED
    assert summary["latest_period"] is None
    assert summary["hot"]["recent10"] == {"error": "No data available"}
