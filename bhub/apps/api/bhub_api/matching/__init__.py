"""Donation-to-application matching: precedence ordering and recommendations."""

from bhub_api.matching.ordering import match_precedence_key, order_matches

__all__ = ["match_precedence_key", "order_matches"]
