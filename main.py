from rich.pretty import pprint

from arbiter import *

__prog__ = "demo"
__docs__ = {
    FaultCode.MISSING_REQUIRED_ARGUMENT: "run 'demo --help' to list every argument",
}

resolver = Resolver(
    [
        from_usage("-c, --config=[FILE] 'sets a custom config file'").default_value("demo.toml"),
        from_usage("-d, --debug... 'turns on debugging'"),
        from_usage("<input> 'the file to process'"),
        argument("format").long("format").takes_value().possible_values(["json", "yaml"]).group("output"),
        argument("quiet").short("q").long("quiet").overrides_with("debug"),
    ],
    [Group("output", "quiet")],
    shell=True,
)


if __name__ == '__main__':
    pprint(resolver)
    pprint(resolver.matches(
        Occurrences()
        .record("debug")
        .record("input", "notes.txt")
        .record("format", "json")
        .record("debug")
    ))
    resolver.matches(Occurrences().record("debug"))
