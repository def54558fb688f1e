from gbsa_engine.camera import CAMERA_LOCK_FLAG, Camera, Pos, u_less_than

IMAGE_W = 480
IMAGE_H = 320


def test_u_less_than():
    assert u_less_than(1, 2)
    assert not u_less_than(2, 1)
    assert not u_less_than(5, 5)


def test_unlocked_camera_inside_bounds_stays():
    cam = Camera(pos=Pos(200, 150))
    cam.update(Pos(0, 0), IMAGE_W, IMAGE_H)
    assert cam.pos == Pos(200, 150)


def test_clamps_to_top_left():
    cam = Camera(pos=Pos(0, 0))
    cam.update(Pos(0, 0), IMAGE_W, IMAGE_H)
    assert cam.pos == Pos(cam.screen_width // 2, cam.screen_height // 2)


def test_clamps_to_bottom_right():
    cam = Camera(pos=Pos(1000, 1000))
    cam.update(Pos(0, 0), IMAGE_W, IMAGE_H)
    assert cam.pos == Pos(IMAGE_W - cam.screen_width // 2, IMAGE_H - cam.screen_height // 2)


def test_locked_camera_follows_target_to_deadzone_edge():
    cam = Camera(pos=Pos(150, 100), deadzone=Pos(8, 8), settings=CAMERA_LOCK_FLAG)
    target = Pos(200, 180)
    cam.update(target, IMAGE_W, IMAGE_H)
    assert cam.pos == Pos(target.x - 8, target.y - 8)


def test_locked_camera_follows_backwards():
    cam = Camera(pos=Pos(300, 200), deadzone=Pos(8, 8), settings=CAMERA_LOCK_FLAG)
    target = Pos(200, 150)
    cam.update(target, IMAGE_W, IMAGE_H)
    assert cam.pos == Pos(target.x + 8, target.y + 8)


def test_target_inside_deadzone_does_not_move():
    cam = Camera(pos=Pos(200, 150), deadzone=Pos(8, 8), settings=CAMERA_LOCK_FLAG)
    cam.update(Pos(204, 146), IMAGE_W, IMAGE_H)
    assert cam.pos == Pos(200, 150)


def test_offset_shifts_follow_point():
    cam = Camera(pos=Pos(200, 150), offset=Pos(20, 0), settings=CAMERA_LOCK_FLAG)
    target = Pos(250, 150)
    cam.update(target, IMAGE_W, IMAGE_H)
    assert cam.pos.x == target.x - 20
    assert cam.pos.y == target.y