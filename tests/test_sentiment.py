"""Tests for sentiment bucketing and the VADER capability probe."""

import pytest

from dreamjournal import sentiment
from dreamjournal.models import Sentiment
from dreamjournal.sentiment import (
    VaderScorer,
    bucket_sentiment,
    classify_sentiment,
    probe_sentiment_capability,
)


class FakeAnalyzer:
    compound = 0.6

    def polarity_scores(self, text):
        return {"neg": 0.0, "neu": 0.4, "pos": 0.6, "compound": self.compound}


def _missing(resource):
    raise LookupError(f"Resource {resource} not found")


class TestBuckets:

    @pytest.mark.parametrize("score,expected", [
        (-1.0, Sentiment.NEGATIVE),
        (-0.31, Sentiment.NEGATIVE),
        (-0.3, Sentiment.NEUTRAL),
        (0.0, Sentiment.NEUTRAL),
        (0.3, Sentiment.NEUTRAL),
        (0.31, Sentiment.POSITIVE),
        (1.0, Sentiment.POSITIVE),
    ])
    def test_thresholds(self, score, expected):
        assert bucket_sentiment(score) == expected

    def test_classify_uses_scorer(self, scorer):
        fixed = scorer(-0.8)
        assert classify_sentiment("a terrible storm", fixed) == Sentiment.NEGATIVE
        assert fixed.calls == ["a terrible storm"]

    def test_empty_text_is_neutral_without_scoring(self, scorer):
        fixed = scorer(0.9)
        assert classify_sentiment("  ", fixed) == Sentiment.NEUTRAL
        assert fixed.calls == []


class TestVaderScorer:

    def test_compound_score(self, monkeypatch):
        monkeypatch.setattr(sentiment, "SentimentIntensityAnalyzer", FakeAnalyzer)
        assert VaderScorer().score("what a lovely dream") == 0.6

    def test_score_clamped(self, monkeypatch):
        class LoudAnalyzer(FakeAnalyzer):
            compound = 1.7

        monkeypatch.setattr(sentiment, "SentimentIntensityAnalyzer", LoudAnalyzer)
        assert VaderScorer().score("amazing") == 1.0

    def test_blank_text_scores_zero(self, monkeypatch):
        monkeypatch.setattr(sentiment, "SentimentIntensityAnalyzer", FakeAnalyzer)
        assert VaderScorer().score("") == 0.0


class TestCapabilityProbe:

    def test_unavailable_without_download(self, monkeypatch):
        monkeypatch.setattr(sentiment.nltk.data, "find", _missing)
        capability = probe_sentiment_capability(allow_download=False)
        assert not capability.available
        assert capability.scorer is None
        assert "not installed" in capability.reason

    def test_failed_download(self, monkeypatch):
        monkeypatch.setattr(sentiment.nltk.data, "find", _missing)
        monkeypatch.setattr(sentiment.nltk, "download", lambda *args, **kwargs: False)
        capability = probe_sentiment_capability(allow_download=True)
        assert not capability.available
        assert "download failed" in capability.reason

    def test_available_when_lexicon_present(self, monkeypatch):
        monkeypatch.setattr(sentiment.nltk.data, "find", lambda resource: "/tmp/" + resource)
        monkeypatch.setattr(sentiment, "SentimentIntensityAnalyzer", FakeAnalyzer)
        capability = probe_sentiment_capability(allow_download=False)
        assert capability.available
        assert capability.scorer.score("flying over the sea") == 0.6

    def test_result_cached(self, monkeypatch):
        calls = []

        def find(resource):
            calls.append(resource)
            return "/tmp/" + resource

        monkeypatch.setattr(sentiment.nltk.data, "find", find)
        monkeypatch.setattr(sentiment, "SentimentIntensityAnalyzer", FakeAnalyzer)

        first = probe_sentiment_capability(allow_download=False)
        second = probe_sentiment_capability(allow_download=False)
        assert first is second
        assert len(calls) == 1

    def test_lexicon_load_error(self, monkeypatch):
        class BrokenAnalyzer:
            def __init__(self):
                raise LookupError("vader_lexicon.txt missing")

        monkeypatch.setattr(sentiment.nltk.data, "find", lambda resource: "/tmp/" + resource)
        monkeypatch.setattr(sentiment, "SentimentIntensityAnalyzer", BrokenAnalyzer)
        capability = probe_sentiment_capability(allow_download=False)
        assert not capability.available
