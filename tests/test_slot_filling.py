"""Tests for the slot-filling prompt sub-flow."""

from datetime import date

from tablebot.conversation.property_merger import merge
from tablebot.prompts.prompt_templates import FIELD_QUESTIONS, NOT_UNDERSTOOD
from tablebot.schemas.reservation_schema import ReservationRecord, TurnInput
from tests.conftest import RULES, TODAY, make_complete_record, make_turn


class TestNextPrompt:
    def test_asks_for_location_first(self, slot_filling, dialog_state):
        result = slot_filling.resume(ReservationRecord(), make_turn(party_size=2), dialog_state)
        assert result.done is False
        assert result.output[-1].endswith(FIELD_QUESTIONS["location"])

    def test_partial_record_asks_for_time(self, slot_filling, dialog_state):
        turn = make_turn(location="Seattle", date="2024-06-01")
        result = slot_filling.resume(ReservationRecord(), turn, dialog_state)
        assert result.done is False
        assert result.record.location == "Seattle"
        assert result.record.date == date(2024, 6, 1)
        assert result.record.time is None
        assert result.record.party_size is None
        assert FIELD_QUESTIONS["time"] in result.output[0]

    def test_acknowledges_accepted_fields(self, slot_filling, dialog_state):
        result = slot_filling.resume(ReservationRecord(), make_turn(location="Seattle"), dialog_state)
        assert result.output[0].startswith("Okay, Seattle.")

    def test_conflict_reported_before_missing_field(self, slot_filling, dialog_state):
        record = ReservationRecord(location="Seattle")
        result = slot_filling.resume(record, make_turn(party_size=30), dialog_state)
        prompt = result.output[0]
        assert "30 guests does not work" in prompt
        assert prompt.endswith(FIELD_QUESTIONS["party_size"])

    def test_first_conflict_wins(self, slot_filling, dialog_state):
        result = slot_filling.resume(
            ReservationRecord(), make_turn(date="2020-01-01", party_size=30), dialog_state
        )
        prompt = result.output[0]
        assert "past" in prompt
        assert "guests" not in prompt
        assert prompt.endswith(FIELD_QUESTIONS["date"])

    def test_not_understood_asks_for_first_missing(self, slot_filling, dialog_state):
        record = ReservationRecord(location="Seattle")
        result = slot_filling.resume(record, TurnInput(text="uh"), dialog_state)
        assert result.output[0] == f"{NOT_UNDERSTOOD} {FIELD_QUESTIONS['date']}"

    def test_prompt_recorded_in_dialog_state(self, slot_filling, dialog_state):
        result = slot_filling.resume(ReservationRecord(), make_turn(location="Seattle"), dialog_state)
        assert dialog_state.last_prompt == result.output[0]
        assert dialog_state.prompt_history == [result.output[0]]


class TestNextField:
    def test_conflict_field_takes_priority(self, slot_filling):
        outcome = merge(ReservationRecord(), make_turn(time="02:00"), today=TODAY, rules=RULES)
        assert slot_filling.next_field(outcome) == "time"

    def test_first_unset_field_without_conflicts(self, slot_filling):
        outcome = merge(
            ReservationRecord(), make_turn(location="Seattle", time="19:00"), today=TODAY, rules=RULES
        )
        assert slot_filling.next_field(outcome) == "date"

    def test_none_when_complete(self, slot_filling):
        outcome = merge(make_complete_record(), TurnInput(), today=TODAY, rules=RULES)
        assert slot_filling.next_field(outcome) is None


class TestCompletion:
    def test_done_when_all_fields_valid(self, slot_filling, dialog_state):
        record = ReservationRecord(location="Seattle", date=date(2024, 6, 1), time=None, party_size=4)
        result = slot_filling.resume(record, make_turn(time="7pm"), dialog_state)
        assert result.done is True
        assert result.output == []
        assert result.record == make_complete_record()

    def test_rejected_edit_on_complete_record_explains(self, slot_filling, dialog_state):
        result = slot_filling.resume(make_complete_record(), make_turn(time="05:00"), dialog_state)
        assert result.done is True
        assert result.record == make_complete_record()
        assert "we only seat guests" in result.output[0]


class TestNluUnavailable:
    def test_reissues_last_prompt_unchanged(self, slot_filling, dialog_state):
        first = slot_filling.resume(ReservationRecord(), make_turn(location="Seattle"), dialog_state)
        record = first.record

        result = slot_filling.resume(record, TurnInput(nlu_available=False), dialog_state)
        assert result.done is False
        assert result.output == first.output
        assert result.record == record

    def test_falls_back_to_current_question(self, slot_filling, dialog_state):
        result = slot_filling.resume(ReservationRecord(), TurnInput(nlu_available=False), dialog_state)
        assert result.output == [FIELD_QUESTIONS["location"]]


class TestHelp:
    def test_help_lists_missing_and_repeats_question(self, slot_filling, dialog_state):
        record = ReservationRecord(location="Seattle", party_size=2)
        prompt = slot_filling.help_prompt(record, dialog_state)
        assert "date and time" in prompt
        assert prompt.endswith(FIELD_QUESTIONS["date"])
        assert dialog_state.last_prompt == prompt


class TestBegin:
    def test_trigger_without_fields_asks_first_question(self, slot_filling, dialog_state):
        result = slot_filling.begin(
            ReservationRecord(), make_turn(text="I'd like to book a table"), dialog_state
        )
        assert result.done is False
        assert result.output == [FIELD_QUESTIONS["location"]]
        assert result.conflicts == []

    def test_trigger_with_fields_is_merged(self, slot_filling, dialog_state):
        result = slot_filling.begin(ReservationRecord(), make_turn(party_size=3), dialog_state)
        assert result.record.party_size == 3
        assert result.output[0].startswith("Okay, 3 guests.")
