def hello(name="world"):
    return f"Hello, {name}!"


exports.default = hello
