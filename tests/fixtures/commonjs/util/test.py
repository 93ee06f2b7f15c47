def assert_(guard, message):
    if not guard:
        raise AssertionError(f"Assert failed: {message}")


exports.assert_ = assert_
