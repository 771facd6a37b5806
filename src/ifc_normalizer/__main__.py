from ifc_normalizer.main import main

main()
