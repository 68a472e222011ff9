class GameError(Exception):
    """Recoverable rejection of a participant action.

    Raised before any room state is touched and reported to the offending
    participant only.
    """

    code = "game_error"
    message = "Action rejected"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class RoomNotFound(GameError):
    code = "room_not_found"
    message = "Room not found"


class RoomFull(GameError):
    code = "room_full"
    message = "Room is full"


class AlreadyInRoom(GameError):
    code = "already_in_room"
    message = "You are already in this room"


class NotInRoom(GameError):
    code = "not_in_room"
    message = "You are not a player in this room"


class InvalidPhaseForAction(GameError):
    code = "invalid_phase"
    message = "This action is not allowed right now"


class NotYourTurn(GameError):
    code = "not_your_turn"
    message = "Not your turn"


class CardNotInHand(GameError):
    code = "card_not_in_hand"
    message = "That card is not in your hand"
