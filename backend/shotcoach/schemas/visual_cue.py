from enum import Enum


class VisualTag(str, Enum):
    MOVE_LEFT = "move_left"
    MOVE_RIGHT = "move_right"
    MOVE_UP = "move_up"
    MOVE_DOWN = "move_down"
    MOVE_FORWARD = "move_forward"
    MOVE_BACK = "move_back"
    ROTATE_CW = "rotate_cw"
    ROTATE_CCW = "rotate_ccw"
    LIGHT_TOP_LEFT = "light_top_left"
    LIGHT_TOP_CENTER = "light_top_center"
    LIGHT_TOP_RIGHT = "light_top_right"
    LIGHT_MID_LEFT = "light_mid_left"
    LIGHT_MID_CENTER = "light_mid_center"
    LIGHT_MID_RIGHT = "light_mid_right"
    LIGHT_BOTTOM_LEFT = "light_bottom_left"
    LIGHT_BOTTOM_CENTER = "light_bottom_center"
    LIGHT_BOTTOM_RIGHT = "light_bottom_right"
    ANGLE_HIGH = "angle_high"
    ANGLE_LOW = "angle_low"


class CompositionOverlay(str, Enum):
    NONE = "none"
    RULE_OF_THIRDS = "rule_of_thirds"
    GOLDEN_RATIO = "golden_ratio"
    GOLDEN_SPIRAL_LEFT = "golden_spiral_left"
    GOLDEN_SPIRAL_RIGHT = "golden_spiral_right"
    CENTER = "center"
    DIAGONAL = "diagonal"
    GOLDEN_TRIANGLE = "golden_triangle"
