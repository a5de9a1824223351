import sys
from dataclasses import dataclass

from rich.pretty import pprint

from argbind import *

__prog__ = "example"


@dataclass
class Arguments:
    input: str = arg("positional,help:file to read", default="")
    output: list[str] = arg("positional,help:list of outputs", default_factory=list)
    verbose: bool = arg("-v,help:verbosity level", default=False)
    workers: int = arg("-w,env:WORKERS,help:number of workers to start", default=4)


if __name__ == '__main__':
    set_version("0.0.0")
    parser = bind(Arguments())
    try:
        pprint(parser.parse(sys.argv[1:]))
    except HelpRequested:
        parser.print_help()
    except VersionRequested:
        parser.print_version()
    except BindException as fault:
        parser.print_usage()
        trigger(fault, shell=True)
