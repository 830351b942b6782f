from tuneboxed.cli import main

main()
