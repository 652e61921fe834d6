from modsync.cli import main

main()
