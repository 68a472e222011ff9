# Inbound
CREATE_ROOM = "create_room"
JOIN_ROOM = "join_room"
CUT_DECK = "cut_deck"
PLAY_CARD = "play_card"

# Outbound
ROOM_CREATED = "room_created"
ROOM_JOINED = "room_joined"
DICE_ROLL_START = "dice_roll_start"
DICE_ROLLED = "dice_rolled"
SHUFFLE_START = "shuffle_start"
YOUR_TURN_TO_CUT = "your_turn_to_cut"
OPPONENT_CUTTING = "opponent_cutting"
DECK_CUT = "deck_cut"
DEALING_START = "dealing_start"
GAME_START = "game_start"
GAME_STATE = "game_state"
TRICK_COMPLETE = "trick_complete"
DRAW_CARD = "draw_card"
OPPONENT_DRAW = "opponent_draw"
COUNTING_START = "counting_start"
GAME_OVER = "game_over"
PLAYER_DISCONNECTED = "player_disconnected"
ERROR = "error"
