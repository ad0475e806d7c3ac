import confuse

from regstatd.utils.tls import create_server_context


def test_create_server_context_unencrypted():
    config = confuse.Configuration("test", read=False)

    context = create_server_context(config["endpoint"]["tls"])
    assert context is None
