from typing import Dict, Optional, Union

from push.models import MatchPushEvent, MatchPushPayload, MatchPushPayloadData

DEFAULT_LOCALE = "en"

TRANSLATIONS: Dict[str, Dict[str, str]] = {
    "Satoshi's League": {"en": "Satoshi's League", "cs": "Satoshiho liga"},
    "defeated": {"en": "defeated", "cs": "vítězí nad"},
}


def translate(key: str, locale: str) -> str:
    """
    Look up ``key`` for ``locale``.

    Falls back to the primary language subtag ("cs-CZ" -> "cs"), then to
    English, then to the key itself.
    """
    locale_translations = TRANSLATIONS.get(key)
    if not locale_translations:
        return key

    for candidate in (locale, (locale or "").split("-")[0].lower()):
        if candidate in locale_translations:
            return locale_translations[candidate]
    return locale_translations.get(DEFAULT_LOCALE, key)


def format_rating(rating: Union[int, float]) -> str:
    """Render 1508.0 as "1508" and keep real fractions."""
    if isinstance(rating, float) and rating.is_integer():
        return str(int(rating))
    return str(rating)


class MatchMessageBuilder:
    @staticmethod
    def format_player(name: str, rank: Optional[int], rating: Optional[Union[int, float]]) -> str:
        """Build "#1 Alice (1508)", leaving out parts that were not supplied."""
        text = name
        if rank is not None:
            text = f"#{rank} {text}"
        if rating is not None:
            text = f"{text} ({format_rating(rating)})"
        return text

    @staticmethod
    def build_body(event: MatchPushEvent, locale: str) -> str:
        if event.is_player_a_winner:
            winner = MatchMessageBuilder.format_player(event.player_a_name, event.player_a_rank, event.player_a_rating)
            loser = MatchMessageBuilder.format_player(event.player_b_name, event.player_b_rank, event.player_b_rating)
        else:
            winner = MatchMessageBuilder.format_player(event.player_b_name, event.player_b_rank, event.player_b_rating)
            loser = MatchMessageBuilder.format_player(event.player_a_name, event.player_a_rank, event.player_a_rating)

        return f"{winner} {translate('defeated', locale)} {loser}!"

    @staticmethod
    def build_payload(event: MatchPushEvent, locale: str) -> MatchPushPayload:
        """Localized "winner defeated loser" notification for one subscriber."""
        return MatchPushPayload(
            title=translate("Satoshi's League", locale),
            body=MatchMessageBuilder.build_body(event, locale),
            data=MatchPushPayloadData(event_id=event.event_id, url="/"),
        )
