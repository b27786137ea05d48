"""Tests for ModerationGate."""
import pytest
from unittest.mock import MagicMock

from speakfree.shared.models import ContentSeverity, ContentType
from speakfree.services.moderation_service.moderator import ModerationGate


@pytest.fixture
def gate():
    return ModerationGate()


class TestToxicityScore:

    def test_friendly_message_scores_zero(self, gate):
        assert gate.toxicity_score("Salut, tu viens au foot ce soir ?") == 0

    def test_phrase_and_pattern_add_up(self, gate):
        # forbidden phrase (+10) and threat pattern (+8)
        assert gate.toxicity_score("Je vais te tuer") == 18

    def test_phrases_are_case_insensitive(self, gate):
        assert gate.toxicity_score("Espèce de CONNARD") >= 10

    def test_shouting(self, gate):
        assert gate.toxicity_score("ARRETE DE ME PARLER") == 3

    def test_short_shouting_ignored(self, gate):
        assert gate.toxicity_score("STOP") == 0

    def test_exclamations_and_stretched_word(self, gate):
        assert gate.toxicity_score("Noooooon!!!!!") == 4


class TestDetectContentType:

    @pytest.mark.parametrize("text,expected", [
        ("tu es mort, ta race", ContentType.VIOLENCE),
        ("sale arabe", ContentType.DISCRIMINATION),
        ("ta mère", ContentType.INSULT),
        ("envoie des nudes", ContentType.SEXUAL),
        ("appelle le 0612345678", ContentType.PERSONAL_INFO),
        ("j'habite au 12 rue Victor Hugo", ContentType.PERSONAL_INFO),
        ("on se voit demain", ContentType.UNKNOWN),
    ])
    def test_priority_order(self, gate, text, expected):
        assert gate.detect_content_type(text) == expected


class TestCheck:

    def test_empty_message_rejected_without_score(self, gate):
        verdict = gate.check("   ")

        assert verdict.allowed is False
        assert verdict.score is None
        assert verdict.reason == "Le message ne peut pas être vide"

    def test_none_message_rejected(self, gate):
        assert gate.check(None).allowed is False

    def test_clean_message_allowed(self, gate):
        verdict = gate.check("Salut, tu viens au foot ce soir ?")

        assert verdict.allowed is True
        assert verdict.score == 0
        assert verdict.warning is None

    def test_threat_blocked_with_violence_reason(self, gate):
        verdict = gate.check("Je vais te tuer")

        assert verdict.allowed is False
        assert verdict.score == 18
        assert verdict.content_type == ContentType.VIOLENCE
        assert verdict.content_severity == ContentSeverity.HIGH
        assert verdict.reason.startswith("Message bloqué : contient des menaces de violence")

    def test_phone_number_alone_warns(self, gate):
        verdict = gate.check("Appelle moi au 0612345678")

        assert verdict.allowed is True
        assert verdict.score == 8
        assert verdict.content_type == ContentType.PERSONAL_INFO
        assert verdict.warning == "Attention au ton de ton message"

    def test_phone_and_address_blocked(self, gate):
        verdict = gate.check("Mon numéro 0612345678 et j'habite au 12 rue Victor Hugo")

        assert verdict.allowed is False
        assert verdict.score == 16
        assert verdict.content_type == ContentType.PERSONAL_INFO
        assert "informations personnelles" in verdict.reason


class TestModerate:

    def test_records_decision(self):
        moderation_log = MagicMock()
        gate = ModerationGate(moderation_log=moderation_log)

        verdict = gate.moderate("Je vais te tuer")

        moderation_log.record.assert_called_once_with("Je vais te tuer", verdict)

    def test_log_failure_keeps_verdict(self):
        moderation_log = MagicMock()
        moderation_log.record.return_value = False
        gate = ModerationGate(moderation_log=moderation_log)

        assert gate.moderate("Bonne journée à tous").allowed is True

    def test_empty_message_not_recorded(self):
        moderation_log = MagicMock()
        gate = ModerationGate(moderation_log=moderation_log)

        gate.moderate("")

        moderation_log.record.assert_not_called()


class TestAnalyze:

    def test_analyze_shape(self, gate):
        result = gate.analyze("sale arabe")

        assert result["contentType"] == "discrimination"
        assert result["severity"] == "high"
        assert result["score"] >= 10
        assert result["allowed"] is False
