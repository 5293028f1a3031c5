from rich.pretty import pprint

from sextant import *

__prog__ = "remote"

add = (
    command("add")
    .describe("register a remote")
    .args(name=arg("remote name"), url=arg("remote location"))
    .flags(
        fetch=flag("fetch right after adding").char("f"),
        tags=flag("tags to track").char("t").optional_param("array", ["main"]),
    )
    .example("remote add origin git@example.com:repo.git -f")
    .action(pprint)
)

prune = (
    command("prune")
    .describe("drop stale references")
    .args(names=arg("remotes to prune").optional().variadic())
    .flags(dryRun=flag("only list what would be pruned").with_negated("prune for real"))
    .action(pprint)
)


if __name__ == '__main__':
    (
        program("remote")
        .version(__version__)
        .describe("manage tracked repositories")
        .flags(verbose=flag("display extra information").char("v"))
        .commands(add, prune)
        .build()
        .run(error_on_unknown=True, fancy=True)
    )
