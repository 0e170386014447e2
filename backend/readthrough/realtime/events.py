"""Socket.IO event names shared by handlers and the playback scheduler."""

# Client -> server
LOGIN = "login"
CREATE_ROOM = "createRoom"
DELETE_ROOM = "deleteRoom"
JOIN_ROOM = "joinRoom"
LEAVE_ROOM = "leaveRoom"
SELECT_SCRIPT = "selectScript"
ASSIGN_CHARACTER = "assignCharacter"
UNASSIGN_CHARACTER = "unassignCharacter"
# Older clients send this name for the same action
UNSELECT_CHARACTER = "unselectCharacter"
START_SCENE = "startScene"
STOP_SCENE = "stopScene"
END_SCENE = "endScene"
RESET_ASSIGNMENTS = "resetAssignments"

# Server -> client
ROOMS = "rooms"
ACTIVE_USERS = "activeUsers"
SCRIPT_LIST_FULL = "scriptListFull"
ROOM_STATE = "roomState"
ROOM_DELETED = "roomDeleted"
SCRIPT_SELECTED = "scriptSelected"
CHARACTER_ASSIGNMENTS = "characterAssignments"
SCENE_STARTED = "sceneStarted"
LINE_PROGRESS = "lineProgress"
SCENE_FINISHED = "sceneFinished"
SCENE_STOPPED = "sceneStopped"
ERROR_MESSAGE = "errorMessage"
