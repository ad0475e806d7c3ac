class Dispatcher(dict):
    def register(self, *names):
        def decorator(method):
            for name in names:
                self[name] = method
            return method

        return decorator
