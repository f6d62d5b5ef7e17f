# Services package: supplier gateway, pricing reconciliation, product search and order submission
