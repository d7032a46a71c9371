from declfacts.cli import main

main()
