# Document store connections and repositories
