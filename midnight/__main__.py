from midnight.cli import main

main(prog_name="midnight")
