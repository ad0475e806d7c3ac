from regstatd.utils.dispatch import Dispatcher


def test_register_many_names():
    dispatcher = Dispatcher()

    @dispatcher.register("push", "pull")
    def handler():
        return "counted"

    assert dispatcher["push"] is handler
    assert dispatcher["pull"] is handler
    assert "delete" not in dispatcher
