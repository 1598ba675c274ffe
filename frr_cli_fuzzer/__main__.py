from frr_cli_fuzzer.runner import main

if __name__ == "__main__":
    main()
