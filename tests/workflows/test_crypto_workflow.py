"""Tests for the crypto-twitter-workflow — formatting, degrade path, delivery outcome."""

from __future__ import annotations

import pytest

from cryptopulse.core.errors import (
    ChainValidationError,
    MissingConfigError,
    NetworkError,
    SourceError,
    ValidationError,
)
from cryptopulse.core.settings import CryptoPulseSettings
from cryptopulse.orchestration import RunState, WorkflowBuilder, WorkflowRunner
from cryptopulse.testing import (
    FailingPriceSource,
    RateLimitedSocialSource,
    RecordingNotifier,
    RecordingSummarizer,
    StaticPriceSource,
    StaticSocialSource,
    make_crypto_workflow,
)
from cryptopulse.workflows import crypto
from cryptopulse.workflows.crypto import (
    DEGRADED_REASON,
    NOTIFICATION_HEADER,
    WORKFLOW_NAME,
    build_crypto_workflow,
    format_price,
    format_summary,
    split_csv,
)

BTC_INPUT = {"ids": "bitcoin", "vs_currencies": "usd"}


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


class TestFormatting:
    def test_split_csv(self):
        assert split_csv("bitcoin, ethereum,,") == ["bitcoin", "ethereum"]
        assert split_csv("") == []

    def test_format_price(self):
        assert format_price(50000.0) == "50000"
        assert format_price(50000) == "50000"
        assert format_price(0.25) == "0.25"
        assert format_price(46000.5) == "46000.5"

    def test_format_small_price_without_exponent(self):
        assert format_price(1.2e-05) == "0.000012"
        assert format_price(0.00000123) == "0.00000123"
        assert format_price(1e-06) == "0.000001"

    def test_format_price_exponent_range(self):
        assert format_price(1.5e-07) == "1.5e-7"
        assert format_price(1e21) == "1e+21"
        assert format_price(1e20) == "100000000000000000000"
        assert format_price(0.0) == "0"

    def test_low_priced_coin_summary(self):
        assert format_summary({"shiba-inu": {"usd": 1.2e-05}}, "r") == (
            "SHIBA-INU: USD: 0.000012\n\n🧠 Reason: r"
        )

    def test_single_asset(self):
        assert format_summary({"bitcoin": {"usd": 50000.0}}, "Calm.") == (
            "BITCOIN: USD: 50000\n\n🧠 Reason: Calm."
        )

    def test_multiple_assets_and_currencies(self):
        summary = format_summary(
            {"bitcoin": {"usd": 50000.0, "eur": 46000.5}, "ethereum": {"usd": 3000.0}},
            "Mixed.",
        )
        assert summary == (
            "BITCOIN: USD: 50000 | EUR: 46000.5\n"
            "ETHEREUM: USD: 3000\n"
            "\n🧠 Reason: Mixed."
        )

    def test_deterministic(self):
        prices = {"bitcoin": {"usd": 1.5}, "solana": {"usd": 150.0}}
        assert format_summary(prices, "r") == format_summary(prices, "r")


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------


class TestAssembly:
    def test_step_order(self):
        wf = make_crypto_workflow()
        assert wf.name == WORKFLOW_NAME
        assert wf.step_ids() == [
            "fetch-crypto-prices",
            "fetch-tweets",
            "analyze-or-skip",
            "summarize-prices",
            "send-telegram-message",
            "map-result",
        ]

    def test_chain_is_validated(self):
        wf = make_crypto_workflow()
        assert set(wf.available_fields("summarize-prices")) >= {"prices", "reason"}
        assert set(wf.available_fields()) >= {"summary", "sent"}

    def test_reordering_steps_fails_at_build_time(self):
        wf = make_crypto_workflow()
        steps = list(wf.steps)
        steps[0], steps[3] = steps[3], steps[0]
        builder = WorkflowBuilder(WORKFLOW_NAME, input=crypto.RunInput, output=crypto.RunOutput)
        for s in steps:
            builder.then(s)
        with pytest.raises(ChainValidationError) as exc_info:
            builder.commit()
        assert exc_info.value.step_id == "summarize-prices"


# ---------------------------------------------------------------------------
# Runs
# ---------------------------------------------------------------------------


class TestHappyPath:
    def test_full_run(self):
        prices = StaticPriceSource({"bitcoin": {"usd": 50000.0}})
        posts = StaticSocialSource(["BTC up", "ETF inflows"])
        summarizer = RecordingSummarizer("Bullish on ETF inflows.")
        notifier = RecordingNotifier()
        wf = build_crypto_workflow(prices, posts, summarizer, notifier)

        result = WorkflowRunner().run(wf, BTC_INPUT)

        expected_summary = "BITCOIN: USD: 50000\n\n🧠 Reason: Bullish on ETF inflows."
        assert result.output == {"summary": expected_summary, "sent": True}
        assert result.run.state == RunState.COMPLETED
        assert prices.calls == [(["bitcoin"], ["usd"])]
        assert posts.queries == ["bitcoin"]
        assert summarizer.calls == [(["BTC up", "ETF inflows"], "bitcoin")]
        assert notifier.sent == [NOTIFICATION_HEADER + expected_summary]
        assert notifier.sent[0].startswith("📊 Crypto Update:\n\n")

    def test_multiple_ids(self):
        prices = StaticPriceSource({"bitcoin": {"usd": 1.0}, "ethereum": {"usd": 2.0}})
        posts = StaticSocialSource([])
        wf = make_crypto_workflow(prices=prices, posts=posts)

        WorkflowRunner().run(wf, {"ids": "bitcoin,ethereum", "vs_currencies": "usd,eur"})

        assert prices.calls == [(["bitcoin", "ethereum"], ["usd", "eur"])]
        assert posts.queries == ["bitcoin OR ethereum"]

    def test_context_only_grows(self):
        result = WorkflowRunner().run(make_crypto_workflow(), BTC_INPUT)
        assert set(result.context.fields) == {
            "ids",
            "vs_currencies",
            "prices",
            "tweets",
            "twitterRateLimited",
            "reason",
            "summary",
            "ok",
            "sent",
        }
        assert result.context.get("twitterRateLimited") is False


class TestRateLimitDegrade:
    def test_degraded_run_completes(self):
        summarizer = RecordingSummarizer()
        notifier = RecordingNotifier()
        wf = make_crypto_workflow(
            posts=RateLimitedSocialSource(), summarizer=summarizer, notifier=notifier
        )

        result = WorkflowRunner().run(wf, BTC_INPUT)

        assert result.output["summary"] == f"BITCOIN: USD: 50000\n\n🧠 Reason: {DEGRADED_REASON}"
        assert result.output["sent"] is True
        assert result.context.get("tweets") == []
        assert result.context.get("twitterRateLimited") is True
        assert summarizer.calls == []
        assert len(notifier.sent) == 1

    def test_degrade_string(self):
        assert DEGRADED_REASON == "Twitter rate limit reached — showing only price update."

    def test_other_social_errors_are_fatal(self):
        class BrokenSocial:
            def search(self, query):
                raise NetworkError("connection reset")

        notifier = RecordingNotifier()
        with pytest.raises(NetworkError):
            WorkflowRunner().run(make_crypto_workflow(posts=BrokenSocial(), notifier=notifier), BTC_INPUT)
        assert notifier.sent == []


class TestDeliveryFailure:
    def test_failed_delivery_is_reported(self):
        notifier = RecordingNotifier(ok=False)
        result = WorkflowRunner().run(make_crypto_workflow(notifier=notifier), BTC_INPUT)
        assert result.output["sent"] is False
        assert result.run.state == RunState.COMPLETED
        assert len(notifier.sent) == 1

    def test_missing_notifier_config_is_fatal(self):
        class Unconfigured:
            def send(self, text):
                raise MissingConfigError("telegram_chat_id")

        with pytest.raises(MissingConfigError):
            WorkflowRunner().run(make_crypto_workflow(notifier=Unconfigured()), BTC_INPUT)


class TestFatalFailures:
    def test_price_failure_aborts_before_anything_else(self):
        posts = StaticSocialSource(["x"])
        summarizer = RecordingSummarizer()
        notifier = RecordingNotifier()
        runner = WorkflowRunner()
        wf = make_crypto_workflow(
            prices=FailingPriceSource(), posts=posts, summarizer=summarizer, notifier=notifier
        )

        with pytest.raises(SourceError) as exc_info:
            runner.run(wf, BTC_INPUT)

        assert exc_info.value.context.step == "fetch-crypto-prices"
        assert exc_info.value.context.metadata["run_state"] == RunState.ABORTED.value
        assert posts.queries == []
        assert summarizer.calls == []
        assert notifier.sent == []

    def test_summarizer_failure_is_fatal(self):
        class BrokenSummarizer:
            def summarize(self, posts, topic):
                raise SourceError("LLM API error 500")

        notifier = RecordingNotifier()
        with pytest.raises(SourceError):
            WorkflowRunner().run(
                make_crypto_workflow(summarizer=BrokenSummarizer(), notifier=notifier), BTC_INPUT
            )
        assert notifier.sent == []

    def test_empty_ids_rejected(self):
        prices = StaticPriceSource({})
        with pytest.raises(ValidationError):
            WorkflowRunner().run(make_crypto_workflow(prices=prices), {"ids": " , ", "vs_currencies": "usd"})
        assert prices.calls == []

    def test_missing_input_rejected(self):
        with pytest.raises(ValidationError):
            WorkflowRunner().run(make_crypto_workflow(), {"ids": "bitcoin"})


# ---------------------------------------------------------------------------
# Wiring from settings
# ---------------------------------------------------------------------------


class TestBuildFromSettings:
    def test_builds_real_collaborators(self):
        settings = CryptoPulseSettings(
            _env_file=None,
            twitter_bearer_token="tw",
            telegram_bot_token="tg",
            telegram_chat_id="1",
            openai_api_key="sk",
        )
        wf = crypto.build_from_settings(settings)
        assert wf.name == WORKFLOW_NAME
        assert len(wf.steps) == 6


# ---------------------------------------------------------------------------
# analyze-or-skip in isolation
# ---------------------------------------------------------------------------


class TestAnalyzeOrSkip:
    def test_degraded_path_ignores_other_fields(self):
        summarizer = RecordingSummarizer("should not be used")
        analyze = crypto.make_analyze_step(summarizer)
        data = crypto.AnalyzeInput(ids="bitcoin", tweets=["up 5%", "bullish"], twitterRateLimited=True)

        assert analyze.handler(data, None) == {"reason": DEGRADED_REASON}
        assert summarizer.calls == []

    @pytest.mark.parametrize("flag", [False, None])
    def test_normal_path(self, flag):
        summarizer = RecordingSummarizer("Sentiment is positive.")
        analyze = crypto.make_analyze_step(summarizer)
        data = crypto.AnalyzeInput(ids="bitcoin", tweets=["up 5%", "bullish"], twitterRateLimited=flag)

        assert analyze.handler(data, None) == {"reason": "Sentiment is positive."}
        assert summarizer.calls == [(["up 5%", "bullish"], "bitcoin")]

    def test_reason_appended_after_prices(self):
        wf = make_crypto_workflow(
            posts=StaticSocialSource(["up 5%", "bullish"]),
            summarizer=RecordingSummarizer("Sentiment is positive."),
        )
        result = WorkflowRunner().run(wf, BTC_INPUT)
        assert result.output["summary"] == "BITCOIN: USD: 50000\n\n🧠 Reason: Sentiment is positive."
