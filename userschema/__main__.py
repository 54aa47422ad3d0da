# noqa: D100
from userschema.cli import cli

if __name__ == "__main__":
    cli(prog_name="userschema")
