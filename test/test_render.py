"""
Usage / help / version rendering tests.

Scope
- Golden outputs: byte-for-byte usage and help for a representative record,
  the long-positional overflow row, explicit program names, version gating.
- Ordering: positionals and options in declaration order, built-ins last.
- Default snapshot: the displayed default is captured when binding.
- Output surfaces: format_*, write_* (plain file objects) and print_* (rich console).

Conventions
- Test method names follow CamelCase per project convention.
- sys.argv is patched, the process-wide version is cleared around every test.
"""
import io
import sys
import unittest
from dataclasses import dataclass, field
from unittest import TestCase
from unittest.mock import patch

from rich.console import Console

from argbind import Config, arg, bind, render_help, render_usage, set_version

USAGE = (
    "usage: example [--name NAME] [--value VALUE] [--verbose] [--dataset DATASET] "
    "[--optimize OPTIMIZE] [--ids IDS] [--values VALUES] [--workers WORKERS] "
    "INPUT [OUTPUT [OUTPUT ...]]\n"
)

HELP = USAGE + """
positional arguments:
  input
  output                 list of outputs

options:
  --name NAME            name to use [default: Foo Bar]
  --value VALUE          secret value [default: 42]
  --verbose, -v          verbosity level
  --dataset DATASET      dataset to use
  --optimize OPTIMIZE, -O OPTIMIZE
                         optimization level
  --ids IDS              Ids
  --values VALUES        Values [default: [3.14 42 256]]
  --workers WORKERS, -w WORKERS
                         number of workers to start
  --help, -h             display this help and exit
"""


@dataclass
class Example:
    input: str = arg("positional", default="")
    output: list[str] = arg("positional,help:list of outputs", default_factory=list)
    name: str = arg("help:name to use", default="")
    value: int = arg("help:secret value", default=0)
    verbose: bool = arg("-v,help:verbosity level", default=False)
    dataset: str = arg("help:dataset to use", default="")
    optimize: int = arg("-O,help:optimization level", default=0)
    ids: list[int] = arg("help:Ids", default_factory=list)
    values: list[float] = arg("help:Values", default_factory=list)
    workers: int = arg("-w,env:WORKERS,help:number of workers to start", default=0)


@dataclass
class LongPositional:
    verylongpositionalwithhelp: str = arg("positional,help:this positional argument is very long", default="")


@dataclass
class Verbose:
    verbose: bool = arg("-v,help:verbosity level", default=False)


@dataclass
class Empty:
    pass


class RenderTestCase(TestCase):
    """Shared fixture: argv[0] is "/path/to/example" and no process-wide version is set."""

    def setUp(self) -> None:
        set_version(None)
        patcher = patch.object(sys, "argv", ["/path/to/example"])
        patcher.start()
        self.addCleanup(patcher.stop)
        self.addCleanup(set_version, None)


class TestGolden(RenderTestCase):
    """Byte-for-byte usage and help outputs."""

    def makeExample(self):
        args = Example()
        args.name = "Foo Bar"
        args.value = 42
        args.values = [3.14, 42, 256]
        return bind(args)

    def testWriteUsage(self):
        usage = io.StringIO()
        self.makeExample().write_usage(usage)
        self.assertEqual(usage.getvalue(), USAGE)

    def testWriteHelp(self):
        help = io.StringIO()
        self.makeExample().write_help(help)
        self.assertEqual(help.getvalue(), HELP)

    def testFormatMatchesWrite(self):
        parser = self.makeExample()
        self.assertEqual(parser.format_usage(), USAGE)
        self.assertEqual(parser.format_help(), HELP)

    def testWriteDefaultsToStdout(self):
        with patch.object(sys, "stdout", io.StringIO()) as stdout:
            self.makeExample().write_usage()
        self.assertEqual(stdout.getvalue(), USAGE)

    def testLongPositionalOverflowsToNextLine(self):
        """
        A label too wide for the shared column puts its description on the next line.
        """
        expected = (
            "usage: example VERYLONGPOSITIONALWITHHELP\n"
            "\n"
            "positional arguments:\n"
            "  verylongpositionalwithhelp\n"
            "                         this positional argument is very long\n"
            "\n"
            "options:\n"
            "  --help, -h             display this help and exit\n"
        )
        self.assertEqual(bind(LongPositional()).format_help(), expected)

    def testProgramNameFromConfig(self):
        expected = (
            "usage: myprogram\n"
            "\n"
            "options:\n"
            "  --help, -h             display this help and exit\n"
        )
        self.assertEqual(bind(Empty(), Config(program="myprogram")).format_help(), expected)

    def testProgramNameResolvedAtRenderTime(self):
        parser = bind(Empty())
        with patch.object(sys, "argv", ["/usr/local/bin/other"]):
            self.assertEqual(parser.format_usage(), "usage: other\n")


class TestVersion(RenderTestCase):
    """Version gating and the version line."""

    def testVersionInHelp(self):
        expected = (
            "usage: example [--verbose]\n"
            "\n"
            "options:\n"
            "  --verbose, -v          verbosity level\n"
            "  --help, -h             display this help and exit\n"
            "  --version              output version information and exit\n"
        )
        set_version("1.2.3")
        self.assertEqual(bind(Verbose()).format_help(), expected)

    def testNoVersionEntryWithoutVersion(self):
        parser = bind(Verbose())
        self.assertNotIn("--version", parser.format_help())
        self.assertIsNone(parser.lookup("--version"))

    def testWriteVersion(self):
        set_version("1.0.0")
        version = io.StringIO()
        bind(Empty()).write_version(version)
        self.assertEqual(version.getvalue(), "example 1.0.0\n")

    def testVersionWithProgramName(self):
        set_version("1.0.0")
        version = io.StringIO()
        bind(Empty(), Config(program="myprogram")).write_version(version)
        self.assertEqual(version.getvalue(), "myprogram 1.0.0\n")

    def testConfigVersionOverridesProcessVersion(self):
        set_version("1.0.0")
        self.assertEqual(bind(Empty(), Config(version="2.0.0")).format_version(), "example 2.0.0\n")

    def testConfigVersionNoneDisablesVersion(self):
        set_version("1.0.0")
        self.assertIsNone(bind(Empty(), Config(version=None)).version)

    def testVersionSnapshottedAtBind(self):
        set_version("1.0.0")
        parser = bind(Empty())
        set_version("9.9.9")
        self.assertEqual(parser.format_version(), "example 1.0.0\n")

    def testVersionWithoutVersionIsCallerError(self):
        with self.assertRaises(TypeError):
            bind(Empty()).format_version()


class TestLayout(RenderTestCase):
    """Ordering, defaults and column rules."""

    def testOptionsInDeclarationOrderBuiltinsLast(self):
        @dataclass
        class Args:
            zeta: str = arg(default="")
            alpha: str = arg(default="")
            mid: bool = arg(default=False)

        set_version("1.0.0")
        help = bind(Args()).format_help()
        positions = [help.index(switch) for switch in ("--zeta", "--alpha", "--mid", "--help", "--version")]
        self.assertEqual(positions, sorted(positions))

    def testPositionalsInDeclarationOrder(self):
        @dataclass
        class Args:
            second: str = arg("positional", default="")
            first: str = arg("positional", default="")

        self.assertEqual(bind(Args()).format_usage(), "usage: example SECOND FIRST\n")

    def testDefaultSnapshottedAtBind(self):
        @dataclass
        class Args:
            value: int = arg("help:secret value", default=0)

        args = Args(value=42)
        parser = bind(args)
        args.value = 7
        self.assertIn("secret value [default: 42]", parser.format_help())

    def testDefaultWithoutHelp(self):
        @dataclass
        class Args:
            level: int = arg(default=3)

        self.assertIn("  --level LEVEL          [default: 3]\n", bind(Args()).format_help())

    def testZeroDefaultsNotAnnotated(self):
        help = bind(Example()).format_help()
        self.assertNotIn("[default:", help)

    def testOptionalPositionalBracketed(self):
        @dataclass
        class Args:
            source: str = arg("positional", default="")
            target: str = arg("positional", default="out")

        self.assertEqual(bind(Args()).format_usage(), "usage: example SOURCE [TARGET]\n")

    def testUnderscoresBecomeHyphens(self):
        @dataclass
        class Args:
            dry_run: bool = arg("help:do nothing", default=False)

        parser = bind(Args())
        self.assertEqual(parser.format_usage(), "usage: example [--dry-run]\n")
        self.assertIn("  --dry-run              do nothing\n", parser.format_help())

    def testRowWithoutDescriptionHasNoPadding(self):
        @dataclass
        class Args:
            bare: str = arg(default="")

        self.assertIn("  --bare BARE\n", bind(Args()).format_help())


class TestStyled(RenderTestCase):
    """Rich output surfaces."""

    def testPlainRenderHasNoSpans(self):
        parser = bind(Example())
        self.assertEqual(render_help(parser).spans, [])
        self.assertEqual(render_usage(parser).spans, [])

    def testColorfulRenderKeepsPlainText(self):
        parser = bind(Example())
        styled = render_help(parser, colorful=True)
        self.assertTrue(styled.spans)
        self.assertEqual(styled.plain, parser.format_help())

    def testPrintHelpOnConsole(self):
        console = Console(file=io.StringIO(), color_system=None, width=200)
        parser = bind(Example())
        parser.print_help(console)
        self.assertEqual(console.file.getvalue(), parser.format_help())

    def testPrintUsageUncolored(self):
        console = Console(file=io.StringIO(), color_system=None, width=200)
        parser = bind(Verbose(), Config(colorful=False))
        parser.print_usage(console)
        self.assertEqual(console.file.getvalue(), "usage: example [--verbose]\n")


if __name__ == "__main__":
    unittest.main()
