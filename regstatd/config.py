import confuse

BACKENDS = ["mongodb", "memory"]


def _check_bind(view: confuse.ConfigView):
    if not view["address"].get(str):
        raise confuse.ConfigValueError(f"{view['address'].name} must not be empty")

    port = view["port"].get(int)
    if not 0 <= port <= 65535:
        raise confuse.ConfigValueError(
            f"{view['port'].name} must be between 0 and 65535, got {port}"
        )

    tls = view["tls"]
    if tls.exists():
        if not tls["certificate"].exists():
            raise confuse.ConfigValueError(f"{tls['certificate'].name} is required")

        for key in ("certificate", "key"):
            if tls[key].exists() and not tls[key].as_path().is_file():
                raise confuse.ConfigValueError(
                    f"Failed to find {tls[key].name} file {tls[key].as_path()}"
                )


def validate(config: confuse.Configuration):
    _check_bind(config["endpoint"])
    _check_bind(config["prometheus"])

    route = config["endpoint"]["route"].get(str)
    if not route.startswith("/"):
        raise confuse.ConfigValueError(
            f"HTTP route (endpoint.route) must start with /: {route!r}"
        )

    backend = config["storage"]["backend"].as_choice(BACKENDS)

    if backend == "mongodb":
        mongodb = config["mongodb"]
        for key in ("database", "collection"):
            if not mongodb[key].get(str):
                raise confuse.ConfigValueError(f"mongodb.{key} is required")
        if mongodb["timeout"].as_number() <= 0:
            raise confuse.ConfigValueError("mongodb.timeout must be positive")

    if not media_types(config):
        raise confuse.ConfigValueError("events.media_types must not be empty")


def media_types(config: confuse.Configuration):
    return tuple(config["events"]["media_types"].as_str_seq())


def read_password(mongodb: confuse.ConfigView):
    if mongodb["password_file"].exists():
        with open(mongodb["password_file"].as_path(), "r") as fp:
            return fp.read().strip()

    if mongodb["password"].exists():
        return mongodb["password"].get(str)

    return None


def mongo_url(mongodb: confuse.ConfigView):
    if mongodb["url"].exists():
        return mongodb["url"].get(str)

    host = mongodb["host"].get(str)
    port = mongodb["port"].get(int)
    return f"mongodb://{host}:{port}"


def dump(config: confuse.Configuration):
    # Never log credentials
    return config.dump(redact=True)
