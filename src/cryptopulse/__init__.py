"""
crypto-pulse — a sequential workflow engine and the crypto price/sentiment
workflow built on it.

Packages:
    core            errors, logging, settings
    orchestration   shapes, steps, workflows, runner, LLM providers
    collaborators   CoinGecko, X/Twitter, summarizer, Telegram
    workflows       crypto-twitter-workflow
"""

__version__ = "0.1.0"
