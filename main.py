from rich.pretty import pprint

from argloom import *

__prog__ = "loom"

parser = or_(
    command("serve", object_({
        "verbose": option("-v", "--verbose"),
        "port": with_default(option("-p", "--port", integer("PORT", min=1, max=65535)), 8080),
        "root": argument(string("DIR")),
    }), description="serve a directory"),
    command("check", object_({
        "strict": option("--strict"),
        "files": multiple(argument(string("FILE")), min=1),
    }), description="check files"),
)


if __name__ == '__main__':
    pprint(parser)
    pprint(run(parser, shell=True, fancy=True))
