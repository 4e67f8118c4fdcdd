"""Notification Dispatcher: one reminder per pending player, each send isolated from the others."""

import logging

from autoresign.chess.rules import RulesEngine
from autoresign.core.exceptions import NotificationError
from autoresign.core.models import DeliveryOutcome, GameModel, NotificationRequest
from autoresign.core.shared_types import DeliveryStatus
from autoresign.db.repository import PlayerRepository
from autoresign.notifications.email import EmailChannel
from autoresign.notifications.rendering import render_auto_resign_email

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """
    Renders and sends auto-resign reminders.
    ----
    No retry within a cycle and no persisted "delivered" flag: a failed send is logged and reported, nothing more.
    """

    def __init__(
        self,
        channel: EmailChannel,
        players: PlayerRepository,
        rules: RulesEngine,
        base_url: str,
        unsubscribe_base_url: str,
    ) -> None:
        self.channel = channel
        self.players = players
        self.rules = rules
        self.base_url = base_url
        self.unsubscribe_base_url = unsubscribe_base_url

    def notify_game(self, game: GameModel, delay_hours: float) -> list[DeliveryOutcome]:
        """
        Remind every player of the side to move.
        Raises InvalidFENError if the side to move cannot be derived from the stored history.
        """
        side_to_move = self.rules.turn_to_move(game.positions)
        pending = self.players.get_players(game.roster(side_to_move))

        outcomes = []
        for player in pending:
            request = NotificationRequest(
                game_id=game.game_id, player=player, delay_hours=delay_hours
            )
            outcomes.append(self.notify(request))
        return outcomes

    def notify(self, request: NotificationRequest) -> DeliveryOutcome:
        player = request.player
        if player.opted_out:
            return self._outcome(request, DeliveryStatus.SKIPPED)

        try:
            message = render_auto_resign_email(
                request, self.base_url, self.unsubscribe_base_url
            )
        except NotificationError as exc:
            return self._failed(request, str(exc))

        result = self.channel.send(message)
        if not result.ok:
            return self._failed(request, result.diagnostic or "unknown delivery error")

        logger.info(
            "Sent auto-resign notification",
            extra={"meta": {"gameId": str(request.game_id), "userId": player.player_id}},
        )
        return self._outcome(request, DeliveryStatus.SENT)

    def _failed(self, request: NotificationRequest, diagnostic: str) -> DeliveryOutcome:
        logger.error(
            "Failed to send auto-resign notification",
            extra={
                "meta": {
                    "gameId": str(request.game_id),
                    "userId": request.player.player_id,
                    "error": diagnostic,
                }
            },
        )
        return self._outcome(request, DeliveryStatus.FAILED, diagnostic)

    @staticmethod
    def _outcome(
        request: NotificationRequest,
        status: DeliveryStatus,
        diagnostic: str | None = None,
    ) -> DeliveryOutcome:
        return DeliveryOutcome(
            game_id=request.game_id,
            player_id=request.player.player_id,
            status=status,
            diagnostic=diagnostic,
        )
