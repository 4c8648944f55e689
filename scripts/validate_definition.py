#!/usr/bin/env python3
"""
Validate a GraphQL API definition without touching AWS.

This script:
1. Loads the JSON definition
2. Compiles it (reference resolution, pipeline linking, auth composition)
3. Prints every problem found, or a summary of the resolved graph

Usage:
    python scripts/validate_definition.py --file api.json [--json] [--graph]
"""

import argparse
import json
import sys

from appsync_api.compiler import ConfigCompiler
from appsync_api.config import load_definition
from appsync_api.errors import AppError, CompilationError


def main() -> int:
    parser = argparse.ArgumentParser(description="Validate a GraphQL API definition")
    parser.add_argument("--file", default="api.json", help="Path to the definition file")
    parser.add_argument("--json", action="store_true", help="Print errors as JSON")
    parser.add_argument("--graph", action="store_true", help="Print the resolved graph on success")
    args = parser.parse_args()

    try:
        graph = ConfigCompiler().compile(load_definition(args.file))
    except AppError as e:
        if args.json:
            print(json.dumps(e.to_dict(), indent=2))
        elif isinstance(e, CompilationError):
            print(f"❌ {len(e.errors)} problem(s) in {args.file}:")
            for error in e.errors:
                print(f"  - {error.message}")
        else:
            print(f"❌ {args.file}: {e.message}")
        return 1
    except OSError as e:
        print(f"❌ Cannot read {args.file}: {e.strerror}")
        return 1
    except json.JSONDecodeError as e:
        print(f"❌ {args.file} is not valid JSON: {e.msg} (line {e.lineno})")
        return 1

    if args.graph:
        print(json.dumps(graph.to_dict(), indent=2))
        return 0

    print(f"✅ {args.file} is valid")
    print(f"  Datasources:        {len(graph.datasources)}")
    print(f"  Functions:          {len(graph.functions)}")
    print(f"  Unit resolvers:     {len(graph.unit_resolvers)}")
    print(f"  Pipeline resolvers: {len(graph.pipeline_resolvers)}")
    print(f"  Primary auth:       {graph.auth.primary.authentication_type.value}")
    for block in graph.auth.additional:
        print(f"  Additional auth:    {block.authentication_type.value}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
