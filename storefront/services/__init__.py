# Storefront services: catalog engine, checkout wizard and backend clients
