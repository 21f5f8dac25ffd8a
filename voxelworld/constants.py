import math

BlockPos = tuple[int, int, int]
ChunkKey = tuple[int, int]

TICKS_PER_SECOND = 60

CHUNK_SIZE_X = 16
CHUNK_SIZE_Y = 64
CHUNK_SIZE_Z = 16
LOAD_RADIUS_CHUNKS = 3

SEA_LEVEL = 20
CRUST_THICKNESS = 4

WALK_SPEED = 5.0
GRAVITY = 30.0
MAX_JUMP_HEIGHT = 1.2
JUMP_SPEED = math.sqrt(2 * GRAVITY * MAX_JUMP_HEIGHT)
TERMINAL_VELOCITY = 50.0
GROUND_TOLERANCE = 0.1

PLAYER_WIDTH = 0.6
PLAYER_HEIGHT = 1.8
PLAYER_REACH = 5.0

RAYCAST_STEP = 0.05
